"""Admin configuration for accounts app."""

from unfold.admin import ModelAdmin
from unfold.decorators import display

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .forms import CustomUserChangeForm, CustomUserCreationForm
from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin, ModelAdmin):
    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    model = CustomUser
    list_display = [
        "display_user",
        "email",
        "display_role",
        "external_id",
        "display_active",
    ]
    list_filter = ["role", "is_active", "is_staff", "is_superuser"]
    search_fields = [
        "username",
        "email",
        "display_name",
        "external_id",
    ]
    readonly_fields = ["external_id", "last_login", "date_joined"]
    fieldsets = (
        (
            "Profile",
            {
                "fields": (
                    "username",
                    "display_name",
                    "email",
                    "role",
                    "external_id",
                ),
            },
        ),
        (
            "Permissions",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "password",
                ),
            },
        ),
        ("Dates", {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "username",
                    "email",
                    "display_name",
                    "role",
                    "password1",
                    "password2",
                ),
            },
        ),
    )

    @display(description="User", header=True)
    def display_user(self, obj):
        return [obj.get_display_name(), obj.username]

    @display(
        description="Role",
        label={
            "ADMIN": "danger",
            "MANAGER": "warning",
            "TECH": "info",
            "VIEWER": "default",
        },
    )
    def display_role(self, obj):
        return obj.role

    @display(description="Active", boolean=True)
    def display_active(self, obj):
        return obj.is_active
