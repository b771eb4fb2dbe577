from rest_framework import serializers

from booking.services.slot_utils import parse_hhmm
from .models import AvailabilityRule


class AvailabilityRuleSerializer(serializers.ModelSerializer):
    class Meta:
        model = AvailabilityRule
        fields = ["id", "day_of_week", "start_time", "end_time", "is_recurring"]
        read_only_fields = ["is_recurring"]

    def validate(self, attrs):
        try:
            start = parse_hhmm(attrs["start_time"])
            end = parse_hhmm(attrs["end_time"])
        except ValueError as exc:
            raise serializers.ValidationError(str(exc))
        if start >= end:
            raise serializers.ValidationError("start_time must be before end_time.")
        return attrs


class WorkingDaysSerializer(serializers.Serializer):
    working_days = AvailabilityRuleSerializer(many=True, allow_empty=True)
