from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from accounts.models import User
from accounts import services


@admin.action(description="Approve selected partners")
def approve_partners(modeladmin, request, queryset):
    for partner in queryset.filter(user_type=User.PARTNER):
        services.update_verification_status(partner.pk, User.VERIFICATION_APPROVED)


@admin.action(description="Reject selected partners")
def reject_partners(modeladmin, request, queryset):
    for partner in queryset.filter(user_type=User.PARTNER):
        services.update_verification_status(partner.pk, User.VERIFICATION_REJECTED)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin panel for custom User model"""

    list_display = [
        "username",
        "email",
        "user_type",
        "verification_status",
        "is_verified",
        "rating",
        "completed_trips",
        "is_active",
    ]

    list_filter = [
        "user_type",
        "verification_status",
        "is_verified",
        "is_active",
        "date_joined",
    ]

    search_fields = [
        "username",
        "email",
        "phone_number",
        "first_name",
        "last_name",
    ]

    ordering = ("username",)
    actions = [approve_partners, reject_partners]

    # Extend default Django UserAdmin fieldsets
    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Additional User Info",
            {
                "fields": (
                    "user_type",
                    "phone_number",
                    "profile_picture",
                    "languages",
                    "rating",
                    "completed_trips",
                )
            },
        ),
        (
            "Partner Verification",
            {
                "fields": (
                    "is_verified",
                    "verification_status",
                    "cin",
                    "address",
                    "city",
                    "postal_code",
                )
            },
        ),
    )

    # For create user page in admin
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        (
            "Additional Info",
            {
                "fields": (
                    "email",
                    "user_type",
                    "phone_number",
                )
            },
        ),
    )
