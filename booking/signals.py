# booking/signals.py
#
# Purpose:
# - Seed a new professional with a default service and Mon-Fri 09:00-17:00
#   availability so the public booking page works right after registration.
#
# Notes:
# - Runs for every creation path (API registration, admin, shell).
#
import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Professional
from .services.catalog import ServiceCatalog

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Professional)
def seed_professional_defaults(sender, instance, created, raw=False, **kwargs):
    # raw=True during loaddata: fixtures bring their own rows
    if not created or raw:
        return
    ServiceCatalog.seed_defaults(instance)
    logger.info("Seeded defaults for professional=%s", instance.pk)
