from django.contrib import admin
from .models import Booking, Client, Professional, Service


@admin.register(Professional)
class ProfessionalAdmin(admin.ModelAdmin):
    list_display = ("id", "business_name", "name", "subscription_status", "created_at")
    list_filter = ("subscription_status",)
    search_fields = ("business_name", "name", "user__email")


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("id", "professional", "name", "price", "duration_minutes", "active")
    list_filter = ("active",)
    search_fields = ("name", "professional__business_name")


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("id", "professional", "name", "email", "total_bookings", "last_booking_at")
    search_fields = ("name", "email")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "professional", "client_name", "service", "start_time", "end_time", "status", "payment_status")
    list_filter = ("status", "payment_status")
    search_fields = ("client_name", "client_email", "service__name")
