from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from apps.common.models import BaseModel


class MenuItem(BaseModel):
    name = models.CharField(max_length=160)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    image = models.CharField(max_length=500)
    description = models.TextField(blank=True)
    is_available = models.BooleanField(default=True)
    # Last time is_available flipped; drives the daily restoration boundary.
    availability_changed_at = models.DateTimeField(default=timezone.now)
    rating_average = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("5"))],
    )
    rating_count = models.PositiveIntegerField(default=0)

    class Meta:
        indexes = [models.Index(fields=["is_available", "availability_changed_at"], name="delivery_menu_avail_idx")]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name


class Order(BaseModel):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        ACCEPTED = "accepted", "Accepted"
        REJECTED = "rejected", "Rejected"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    ACTIVE_STATUSES = (Status.PENDING, Status.ACCEPTED)
    TERMINAL_STATUSES = (Status.REJECTED, Status.COMPLETED, Status.CANCELLED)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    customer_name = models.CharField(max_length=160)
    customer_phone = models.CharField(max_length=40)
    customer_address = models.CharField(max_length=400)

    class Meta:
        indexes = [
            models.Index(fields=["status", "created_at"], name="delivery_order_status_idx"),
            models.Index(fields=["user", "created_at"], name="delivery_order_user_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"#{self.short_code} ({self.status})"

    @property
    def short_code(self) -> str:
        return self.id.hex[-6:].upper() if self.id else ""

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def save(self, *args, **kwargs):
        is_new = self._state.adding
        prev_status = None
        should_track_status = True
        source = getattr(self, "_status_change_source", None)
        note = getattr(self, "_status_change_note", "")
        if not is_new and self.pk:
            update_fields = kwargs.get("update_fields")
            should_track_status = update_fields is None or "status" in update_fields
            if should_track_status:
                prev_status = (
                    type(self)
                    .objects.filter(pk=self.pk)
                    .values_list("status", flat=True)
                    .first()
                )
        super().save(*args, **kwargs)
        if hasattr(self, "_status_change_source"):
            delattr(self, "_status_change_source")
        if hasattr(self, "_status_change_note"):
            delattr(self, "_status_change_note")
        if is_new:
            OrderStatusChange.objects.create(
                order=self,
                status=self.status,
                source=source or "initial",
                note=note or "",
            )
        elif should_track_status and prev_status != self.status:
            OrderStatusChange.objects.create(
                order=self,
                status=self.status,
                source=source or "",
                note=note or "",
            )

    def set_status(self, status: str, *, source: str | None = None, note: str = "") -> None:
        self.status = status
        if source:
            self._status_change_source = source
        if note:
            self._status_change_note = note[:200]
        self.save(update_fields=["status", "updated_at"])


class OrderItem(BaseModel):
    """Line item snapshot; never follows later menu edits."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    # Menu item identifier exactly as submitted; deliberately not a foreign key.
    item_ref = models.CharField(max_length=64, db_index=True)
    name = models.CharField(max_length=160)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        ordering = ["created_at"]

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class OrderStatusChange(BaseModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="status_changes")
    status = models.CharField(max_length=20, choices=Order.Status.choices)
    source = models.CharField(max_length=32, blank=True)
    note = models.CharField(max_length=200, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["order", "created_at"], name="delivery_ord_idx"),
        ]
        ordering = ["created_at"]


class Rating(BaseModel):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="ratings")
    menu_item = models.ForeignKey(MenuItem, on_delete=models.CASCADE, related_name="ratings")
    value = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "menu_item"], name="delivery_rating_user_item_uniq"),
        ]
