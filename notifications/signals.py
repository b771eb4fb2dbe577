# notifications/signals.py
#
# Purpose:
# - Turn Booking changes into outbox notifications.
#   * created                     -> "create"
#   * status -> CONFIRMED          -> "confirm"
#   * status -> CANCELLED          -> "delete"  (calendar event removed, client told)
#   * status -> COMPLETED          -> "update"
#   * start_time moved (reschedule)-> "update"
#   * booking deleted              -> "delete"
#
# Notes:
# - Saves that only touch notes/payment_status notify nobody.
# - Saves without update_fields (admin, shell) are treated as "update".
# - Cascade deletes (professional/service removed) do not notify.
#
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from booking.models import Booking
from notifications.outbox import enqueue

STATUS_ACTIONS = {
    Booking.CONFIRMED: "confirm",
    Booking.CANCELLED: "delete",
    Booking.COMPLETED: "update",
}


@receiver(post_save, sender=Booking)
def booking_saved(sender, instance: Booking, created: bool, update_fields=None, raw=False, **kwargs):
    if raw:
        return
    if created:
        enqueue(instance, "create")
        return

    if update_fields is None:
        enqueue(instance, "update")
        return

    fields = set(update_fields)
    if "status" in fields:
        action = STATUS_ACTIONS.get(instance.status)
        if action:
            enqueue(instance, action)
    elif "start_time" in fields:
        enqueue(instance, "update")


@receiver(post_delete, sender=Booking)
def booking_deleted(sender, instance: Booking, origin=None, **kwargs):
    if not isinstance(origin, Booking):
        return
    enqueue(instance, "delete")
