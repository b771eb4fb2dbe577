import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("booking", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AvailabilityRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("day_of_week", models.PositiveSmallIntegerField(choices=[(0, "Sunday"), (1, "Monday"), (2, "Tuesday"), (3, "Wednesday"), (4, "Thursday"), (5, "Friday"), (6, "Saturday")], validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(6)])),
                ("start_time", models.CharField(max_length=5, validators=[django.core.validators.RegexValidator(message="Use HH:MM (24h).", regex="^([01]\\d|2[0-3]):[0-5]\\d$")])),
                ("end_time", models.CharField(max_length=5, validators=[django.core.validators.RegexValidator(message="Use HH:MM (24h).", regex="^([01]\\d|2[0-3]):[0-5]\\d$")])),
                ("is_recurring", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("professional", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="availability_rules", to="booking.professional")),
            ],
            options={
                "ordering": ["professional_id", "day_of_week", "start_time"],
            },
        ),
    ]
