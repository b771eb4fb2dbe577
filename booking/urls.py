# booking/urls.py
#
# Purpose:
# - Expose the booking app's JSON API (mounted under /api/ by booking_system/urls.py).
#   * Public booking page:  booking/{professional_id}/, .../availability/, .../create/
#   * Dashboard (router):   bookings/, services/, clients/
#   * Auth:                 auth/register, auth/login, auth/logout
#
# Notes for developers:
# - Dashboard viewsets are registered on a DefaultRouter; the status action
#   on BookingViewSet becomes bookings/{id}/status/.
# - Availability rules live in their own app at /api/availability/.

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .auth_views import LoginView, LogoutView, ProfessionalRegisterView
from .views import (
    BookingViewSet,
    ClientViewSet,
    PublicAvailabilityView,
    PublicBookingCreateView,
    PublicBookingInfoView,
    ServiceViewSet,
    health_check,
)

# --------------------------
# DRF Router registrations
# --------------------------
router = DefaultRouter()
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"services", ServiceViewSet, basename="service")
router.register(r"clients", ClientViewSet, basename="client")

# --------------------------
# URL patterns
# --------------------------
urlpatterns = [
    # 1) Public booking page (no login)
    path("booking/<int:professional_id>/", PublicBookingInfoView.as_view(), name="public-booking-info"),
    path(
        "booking/<int:professional_id>/availability/",
        PublicAvailabilityView.as_view(),
        name="public-booking-availability",
    ),
    path("booking/<int:professional_id>/create/", PublicBookingCreateView.as_view(), name="public-booking-create"),

    # 2) Auth API (JSON)
    path("auth/register", ProfessionalRegisterView.as_view(), name="auth-register"),
    path("auth/login", LoginView.as_view(), name="auth-login"),
    path("auth/logout", LogoutView.as_view(), name="auth-logout"),

    path("health/", health_check, name="health"),

    # 3) Dashboard REST API (JSON)
    path("", include(router.urls)),
]
