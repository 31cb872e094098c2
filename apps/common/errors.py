"""Domain errors raised by services and mapped to JSON responses by ``api_view``.

Every error carries the HTTP status and a stable machine-readable ``code``;
the message is safe to show to the client.
"""


class ApiError(Exception):
    status = 400
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    status = 400
    code = "validation_error"
    default_message = "Invalid input"


class RangeError(ValidationError):
    code = "out_of_range"
    default_message = "Value out of range"


class AuthError(ApiError):
    status = 401
    code = "unauthorized"
    default_message = "Unauthorized"


class ForbiddenError(ApiError):
    status = 403
    code = "forbidden"
    default_message = "Forbidden"


class NotEligibleError(ApiError):
    status = 403
    code = "not_eligible"
    default_message = "Not eligible"


class NotFoundError(ApiError):
    status = 404
    code = "not_found"
    default_message = "Not found"


class WindowExpiredError(ApiError):
    status = 400
    code = "window_expired"
    default_message = "Time window has expired"


class ConflictError(ApiError):
    status = 409
    code = "conflict"
    default_message = "Conflict"


class InvalidTransitionError(ApiError):
    status = 409
    code = "invalid_transition"
    default_message = "Invalid status transition"


class RateLimitedError(ApiError):
    status = 429
    code = "rate_limited"
    default_message = "Too many attempts. Try again in a few seconds."

    def __init__(self, message: str | None = None, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after
