from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ["id", "user", "type", "title", "read", "created_at"]
    list_filter = ["type", "read"]
    search_fields = ["user__username", "user__email", "title"]
    readonly_fields = ["created_at"]
