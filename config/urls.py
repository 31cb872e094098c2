from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/", include("apps.accounts.urls")),
    path("api/", include("apps.delivery.urls")),
    path("api/", include("apps.notifications.urls")),
    path("api/", include("apps.gallery.urls")),
    # Healthcheck endpoint
    path("healthz", lambda _request: JsonResponse({"status": "ok"})),
]
