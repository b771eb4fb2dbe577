from django.contrib import admin
from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("booking_id", "channel", "action", "status", "attempts", "created_at", "sent_at")
    list_filter = ("status", "channel", "action", "created_at")
    search_fields = ("booking_id", "last_error")
