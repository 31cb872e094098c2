from django.contrib import admin

from .models import MenuItem, Order, OrderItem, OrderStatusChange, Rating


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "is_available", "rating_average", "rating_count", "created_at")
    list_filter = ("is_available",)
    search_fields = ("name", "description")
    ordering = ("-created_at",)
    readonly_fields = ("rating_average", "rating_count", "availability_changed_at")


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ("item_ref", "name", "price", "quantity")


class OrderStatusChangeInline(admin.TabularInline):
    model = OrderStatusChange
    extra = 0
    fields = ("status", "source", "note", "created_at")
    readonly_fields = ("status", "source", "note", "created_at")
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("short_code", "user", "status", "customer_name", "customer_phone", "total_amount", "created_at")
    list_filter = ("status",)
    search_fields = ("customer_name", "customer_phone", "user__username", "user__email")
    date_hierarchy = "created_at"
    ordering = ("-created_at",)
    inlines = [OrderItemInline, OrderStatusChangeInline]
    list_select_related = ("user",)


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    list_display = ("menu_item", "user", "value", "updated_at")
    list_filter = ("value",)
    search_fields = ("menu_item__name", "user__username")
    list_select_related = ("menu_item", "user")
