# availability/views.py
#
# Purpose:
# - Authenticated management of a professional's weekly availability.
#   * GET  /api/availability/  -> list rules (day, start)
#   * POST /api/availability/  -> replace all recurring rules at once
#
import logging

from django.db import transaction
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from booking.permissions import IsProfessional, current_professional
from .models import AvailabilityRule
from .serializers import AvailabilityRuleSerializer, WorkingDaysSerializer

logger = logging.getLogger(__name__)


class AvailabilityView(APIView):
    permission_classes = [IsProfessional]

    def get(self, request):
        professional = current_professional(request)
        rules = AvailabilityRule.objects.filter(
            professional=professional, is_recurring=True
        ).order_by("day_of_week", "start_time")
        return Response(AvailabilityRuleSerializer(rules, many=True).data)

    def post(self, request):
        """
        Body: {"working_days": [{"day_of_week": 1, "start_time": "09:00", "end_time": "17:00"}, ...]}
        An empty list clears the weekly pattern (no bookable slots).
        """
        professional = current_professional(request)
        serializer = WorkingDaysSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        days = serializer.validated_data["working_days"]

        with transaction.atomic():
            AvailabilityRule.objects.filter(professional=professional, is_recurring=True).delete()
            AvailabilityRule.objects.bulk_create([
                AvailabilityRule(professional=professional, is_recurring=True, **day)
                for day in days
            ])

        logger.info("Replaced availability professional=%s rules=%d", professional.pk, len(days))
        return Response(
            {"message": "Availability saved", "count": len(days)},
            status=status.HTTP_200_OK,
        )
