from django.urls import path

from . import views

app_name = "notifications"

urlpatterns = [
    path("notifications", views.notification_list, name="list"),
    path("notifications/<uuid:notification_id>", views.notification_detail, name="detail"),
]
