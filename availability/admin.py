# availability/admin.py
from django.contrib import admin
from .models import AvailabilityRule


@admin.register(AvailabilityRule)
class AvailabilityRuleAdmin(admin.ModelAdmin):
    list_display = ("professional", "day_of_week", "start_time", "end_time", "is_recurring")
    list_filter = ("day_of_week", "is_recurring")
    search_fields = ("professional__business_name", "professional__name")
