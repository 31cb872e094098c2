from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.translation import gettext_lazy as _


User = get_user_model()


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ("username", "email", "phone", "role", "is_active", "created_at")
    list_filter = ("role", "is_active")
    search_fields = ("username", "email", "phone")
    ordering = ("username",)

    fieldsets = DjangoUserAdmin.fieldsets + (
        (_("Café"), {"fields": ("role", "phone", "address")}),
    )

    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        (_("Café"), {"classes": ("wide",), "fields": ("email", "phone", "address", "role")}),
    )
