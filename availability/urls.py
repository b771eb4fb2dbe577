from django.urls import path
from .views import AvailabilityView

urlpatterns = [path("", AvailabilityView.as_view(), name="availability")]
