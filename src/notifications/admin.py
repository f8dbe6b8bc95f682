from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ["title", "recipient", "notification_type", "priority", "is_read", "created_at", "expires_at"]
    list_filter = ["notification_type", "priority", "is_read"]
    search_fields = ["title", "message", "recipient__username", "recipient__email"]
    raw_id_fields = ["recipient", "related_event", "related_registration"]
    date_hierarchy = "created_at"
