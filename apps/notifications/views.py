from django.http import JsonResponse

from apps.accounts.auth import authenticate
from apps.common import errors
from apps.common.http import api_view

from .models import Notification


def serialize_notification(n: Notification) -> dict:
    return {
        "id": str(n.id),
        "user_id": str(n.user_id),
        "order_id": str(n.order_id) if n.order_id else None,
        "message": n.message,
        "category": n.category,
        "is_read": n.is_read,
        "created_at": n.created_at.isoformat(),
    }


@api_view(["GET"])
def notification_list(request):
    principal = authenticate(request)
    qs = Notification.objects.filter(user_id=principal.user_id).order_by("-created_at")
    items = [serialize_notification(n) for n in qs]
    return JsonResponse({
        "success": True,
        "notifications": items,
        "unread_count": sum(1 for n in items if not n["is_read"]),
    })


@api_view(["PATCH"])
def notification_detail(request, notification_id):
    principal = authenticate(request)
    n = Notification.objects.filter(pk=notification_id).first()
    if not n:
        raise errors.NotFoundError("Notification not found")
    if n.user_id != principal.user_id:
        raise errors.ForbiddenError("You can only update your own notifications")
    n.mark_read()
    return JsonResponse({"success": True, "notification": serialize_notification(n)})
