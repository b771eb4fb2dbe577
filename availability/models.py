# availability/models.py
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models

hhmm_validator = RegexValidator(
    regex=r"^([01]\d|2[0-3]):[0-5]\d$",
    message="Use HH:MM (24h).",
)


class AvailabilityRule(models.Model):
    """
    Recurring weekly window when a professional accepts bookings.

    day_of_week: 0 = Sunday .. 6 = Saturday.
    start_time/end_time: local wall-clock "HH:MM" strings.
    Several rules may exist for the same day; the slot generator merges them.
    """
    DAY_CHOICES = [
        (0, "Sunday"),
        (1, "Monday"),
        (2, "Tuesday"),
        (3, "Wednesday"),
        (4, "Thursday"),
        (5, "Friday"),
        (6, "Saturday"),
    ]

    professional = models.ForeignKey(
        "booking.Professional",
        on_delete=models.CASCADE,
        related_name="availability_rules",
    )
    day_of_week = models.PositiveSmallIntegerField(
        choices=DAY_CHOICES,
        validators=[MinValueValidator(0), MaxValueValidator(6)],
    )
    start_time = models.CharField(max_length=5, validators=[hhmm_validator])
    end_time = models.CharField(max_length=5, validators=[hhmm_validator])
    is_recurring = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["professional_id", "day_of_week", "start_time"]

    def __str__(self):
        return f"{self.get_day_of_week_display()}: {self.start_time} - {self.end_time}"
