from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("user", "order", "category", "is_read", "created_at")
    list_filter = ("category", "is_read")
    search_fields = ("user__username", "message")
    ordering = ("-created_at",)
    list_select_related = ("user", "order")
