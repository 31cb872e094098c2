from django.conf import settings
from django.db import models

from apps.common.models import BaseModel


class Notification(BaseModel):
    class Category(models.TextChoices):
        ORDER_PLACED = "order_placed", "Order placed"
        ORDER_ACCEPTED = "order_accepted", "Order accepted"
        ORDER_REJECTED = "order_rejected", "Order rejected"
        ORDER_COMPLETED = "order_completed", "Order completed"
        ORDER_CANCELLED = "order_cancelled", "Order cancelled"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    order = models.ForeignKey(
        "delivery.Order", on_delete=models.SET_NULL, null=True, blank=True, related_name="notifications"
    )
    message = models.TextField()
    category = models.CharField(max_length=32, choices=Category.choices)
    is_read = models.BooleanField(default=False)

    class Meta:
        indexes = [
            models.Index(fields=["user", "created_at"], name="notif_user_created_idx"),
        ]
        ordering = ["-created_at"]

    def mark_read(self) -> bool:
        """Flip ``is_read`` false→true; never the other way."""
        if self.is_read:
            return False
        self.is_read = True
        self.save(update_fields=["is_read", "updated_at"])
        return True
