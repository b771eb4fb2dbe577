# booking_system/urls.py
#
# Purpose:
# - Project URL router.
# - Everything except the Django admin is JSON under /api/.
#
from django.contrib import admin
from django.urls import include, path


urlpatterns = [
    # Django admin
    path("admin/", admin.site.urls),

    # =====
    # API's
    # =====
    # Availability first so its prefix is not shadowed by the booking router.
    path("api/availability/", include("availability.urls")),
    path("api/", include("booking.urls")),
]
