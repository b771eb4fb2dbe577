from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from io import StringIO
from unittest import mock

import requests
from django.core import mail
from django.core.management import call_command
from django.db import transaction
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from booking.models import Booking
from booking.services.booking_manager import BookingManager
from booking.tests.helpers import default_service, make_booking, make_professional, next_weekday, only_rule
from notifications import outbox
from notifications.models import Notification
from notifications.outbox import dispatch, enqueue
from notifications.senders import CalendarSender, NotificationError, SmsSender

UTC = dt_timezone.utc
MONDAY = date(2030, 1, 7)
SUNDAY_NOON = datetime(2030, 1, 6, 12, 0, tzinfo=UTC)


def ok_response(status_code=200):
    return mock.Mock(status_code=status_code)


@override_settings(
    TIME_ZONE="UTC",
    NOTIFICATION_CHANNELS=["sms", "calendar", "email"],
    SMS_WEBHOOK_URL="https://sms.example.test/send",
    CALENDAR_SYNC_URL="",
    NOTIFICATIONS_DISPATCH_INLINE=True,
)
class OutboxDispatchTests(TestCase):
    def setUp(self):
        self.pro = make_professional()
        self.service = default_service(self.pro)
        self.manager = BookingManager()

    def create_booking(self, phone="+15550100"):
        return self.manager.create_booking(
            professional_id=self.pro.pk,
            service_id=self.service.pk,
            client_name="Casey Client",
            client_email="casey@example.com",
            client_phone=phone,
            date=MONDAY,
            time=time(10, 0),
            now=SUNDAY_NOON,
        )

    def test_create_enqueues_and_dispatches_after_commit(self):
        with mock.patch("notifications.senders.requests.post", return_value=ok_response()) as post:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                booking = self.create_booking()
                # Nothing leaves before commit
                post.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        rows = {n.channel: n for n in Notification.objects.filter(booking_id=booking.pk)}
        self.assertEqual(set(rows), {"sms", "calendar", "email"})
        self.assertTrue(all(n.action == "create" for n in rows.values()))

        self.assertEqual(rows["sms"].status, Notification.SENT)
        self.assertEqual(rows["calendar"].status, Notification.SKIPPED)  # no URL configured
        self.assertEqual(rows["email"].status, Notification.SENT)

        post.assert_called_once()
        body = post.call_args.kwargs["json"]
        self.assertEqual(body["booking_id"], booking.pk)
        self.assertEqual(body["message_type"], "confirmation")
        self.assertEqual(body["to"], "+15550100")
        self.assertEqual(post.call_args.kwargs["timeout"], 5)

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["casey@example.com"])
        self.assertIn(f"#{booking.pk}", mail.outbox[0].subject)

    def test_sender_failure_does_not_roll_back_booking(self):
        with mock.patch(
            "notifications.senders.requests.post", side_effect=requests.ConnectionError("sms down")
        ):
            with self.captureOnCommitCallbacks(execute=True):
                booking = self.create_booking()

        self.assertTrue(Booking.objects.filter(pk=booking.pk).exists())
        sms = Notification.objects.get(booking_id=booking.pk, channel="sms")
        self.assertEqual(sms.status, Notification.FAILED)
        self.assertEqual(sms.attempts, 1)
        self.assertIn("sms down", sms.last_error)

    def test_failed_rows_are_retried(self):
        with mock.patch("notifications.senders.requests.post", return_value=ok_response(503)):
            with self.captureOnCommitCallbacks(execute=True):
                booking = self.create_booking()
        sms = Notification.objects.get(booking_id=booking.pk, channel="sms")
        self.assertEqual(sms.status, Notification.FAILED)

        with mock.patch("notifications.senders.requests.post", return_value=ok_response()):
            counts = dispatch()
        self.assertEqual(counts, {"sent": 1, "skipped": 0, "failed": 0})
        sms.refresh_from_db()
        self.assertEqual(sms.status, Notification.SENT)
        self.assertEqual(sms.attempts, 2)
        self.assertIsNotNone(sms.sent_at)

    def test_attempt_ceiling(self):
        booking = self.create_booking()  # callbacks never run: rows stay pending
        Notification.objects.filter(booking_id=booking.pk).update(attempts=3, status=Notification.FAILED)
        with mock.patch("notifications.senders.requests.post", return_value=ok_response()) as post:
            counts = dispatch(max_attempts=3)
        self.assertEqual(counts, {"sent": 0, "skipped": 0, "failed": 0})
        post.assert_not_called()

    def test_rolled_back_booking_sends_nothing(self):
        with mock.patch("notifications.senders.requests.post") as post:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                with self.assertRaises(RuntimeError):
                    with transaction.atomic():
                        self.create_booking()
                        raise RuntimeError("abort")
        self.assertEqual(callbacks, [])
        self.assertFalse(Notification.objects.exists())
        self.assertFalse(Booking.objects.exists())
        post.assert_not_called()

    def test_sms_skipped_without_phone(self):
        with mock.patch("notifications.senders.requests.post") as post:
            with self.captureOnCommitCallbacks(execute=True):
                booking = self.create_booking(phone="")
        sms = Notification.objects.get(booking_id=booking.pk, channel="sms")
        self.assertEqual(sms.status, Notification.SKIPPED)
        post.assert_not_called()


@override_settings(
    TIME_ZONE="UTC",
    NOTIFICATION_CHANNELS=["sms", "calendar"],
    SMS_WEBHOOK_URL="https://sms.example.test/send",
    CALENDAR_SYNC_URL="https://cal.example.test/sync",
    NOTIFICATIONS_DISPATCH_INLINE=False,
)
class BackgroundDispatchTests(TestCase):
    def setUp(self):
        self.pro = make_professional()
        self.service = default_service(self.pro)
        only_rule(self.pro, 1, "09:00", "17:00")
        self.client = APIClient()

    def book(self):
        return self.client.post(
            f"/api/booking/{self.pro.pk}/create/",
            {
                "service_id": self.service.pk,
                "client_name": "Casey Client",
                "client_email": "casey@example.com",
                "client_phone": "+15550100",
                "date": next_weekday(1).isoformat(),
                "time": "10:00",
            },
            format="json",
        )

    def test_create_response_does_not_wait_for_webhooks(self):
        executor = mock.Mock()
        with mock.patch("notifications.outbox.get_executor", return_value=executor), \
                mock.patch("notifications.senders.requests.post") as post:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                resp = self.book()

        self.assertEqual(resp.status_code, 201, resp.content)
        self.assertEqual(len(callbacks), 1)
        post.assert_not_called()

        executor.submit.assert_called_once()
        func, ids = executor.submit.call_args.args
        self.assertIs(func, outbox._dispatch_in_background)
        booking_id = resp.json()["booking"]["id"]
        self.assertCountEqual(
            ids, Notification.objects.filter(booking_id=booking_id).values_list("pk", flat=True)
        )
        self.assertFalse(
            Notification.objects.filter(booking_id=booking_id).exclude(status=Notification.PENDING).exists()
        )

    def test_background_job_delivers_and_releases_connection(self):
        with mock.patch("notifications.outbox.get_executor") as get_executor:
            with self.captureOnCommitCallbacks(execute=True):
                resp = self.book()
        func, ids = get_executor.return_value.submit.call_args.args

        with mock.patch("notifications.senders.requests.post", return_value=ok_response()) as post, \
                mock.patch("notifications.outbox.connection") as conn:
            func(ids)

        self.assertEqual(post.call_count, 2)
        conn.close.assert_called_once()
        booking_id = resp.json()["booking"]["id"]
        self.assertEqual(
            set(Notification.objects.filter(booking_id=booking_id).values_list("status", flat=True)),
            {Notification.SENT},
        )

    def test_background_job_logs_unexpected_errors(self):
        with mock.patch("notifications.outbox.dispatch", side_effect=RuntimeError("boom")), \
                mock.patch("notifications.outbox.connection"):
            with self.assertLogs("notifications.outbox", level="ERROR") as logs:
                outbox._dispatch_in_background([1, 2])
        self.assertIn("Background dispatch failed", logs.output[0])


@override_settings(TIME_ZONE="UTC", NOTIFICATION_CHANNELS=["calendar"])
class BookingSignalTests(TestCase):
    def setUp(self):
        self.pro = make_professional()
        self.service = default_service(self.pro)
        self.manager = BookingManager()
        self.booking = make_booking(
            self.pro, self.service, datetime(2030, 1, 7, 10, 0, tzinfo=UTC), status=Booking.PENDING
        )

    def actions(self):
        return list(
            Notification.objects.filter(booking_id=self.booking.pk)
            .order_by("id")
            .values_list("action", flat=True)
        )

    def test_lifecycle_actions(self):
        self.manager.update_status(self.pro.pk, self.booking.pk, Booking.CONFIRMED)
        self.manager.update_booking(
            self.pro.pk, self.booking.pk, {"date": MONDAY, "time": time(14, 0)}, now=SUNDAY_NOON
        )
        self.manager.update_status(self.pro.pk, self.booking.pk, Booking.CANCELLED)
        self.assertEqual(self.actions(), ["create", "confirm", "update", "delete"])

    def test_completed_is_update(self):
        self.manager.update_status(self.pro.pk, self.booking.pk, Booking.CONFIRMED)
        self.manager.update_status(self.pro.pk, self.booking.pk, Booking.COMPLETED)
        self.assertEqual(self.actions(), ["create", "confirm", "update"])

    def test_notes_and_noop_status_do_not_notify(self):
        self.manager.update_booking(self.pro.pk, self.booking.pk, {"notes": "x", "payment_status": "PAID"})
        self.manager.update_status(self.pro.pk, self.booking.pk, Booking.PENDING)
        self.assertEqual(self.actions(), ["create"])

    def test_delete_notifies_with_snapshot(self):
        booking_id = self.booking.pk
        self.manager.delete_booking(self.pro.pk, booking_id)
        delete = Notification.objects.get(booking_id=booking_id, action="delete")
        self.assertEqual(delete.payload["service_name"], "Consultation")
        self.assertEqual(delete.payload["start_time"], "2030-01-07T10:00:00+00:00")

    def test_cascade_delete_does_not_notify(self):
        self.service.delete()
        self.assertFalse(Notification.objects.filter(action="delete").exists())


@override_settings(TIME_ZONE="UTC", NOTIFICATION_CHANNELS=["sms", "calendar", "email"])
class SenderTests(TestCase):
    def setUp(self):
        self.pro = make_professional()
        booking = make_booking(self.pro, default_service(self.pro), datetime(2030, 1, 7, 10, 0, tzinfo=UTC))
        self.notification = Notification.objects.filter(booking_id=booking.pk).first()

    def test_unconfigured_webhook_is_skipped(self):
        self.assertFalse(CalendarSender(url="").send(self.notification))

    def test_http_error_raises(self):
        with mock.patch("notifications.senders.requests.post", return_value=ok_response(500)):
            with self.assertRaises(NotificationError):
                SmsSender(url="https://sms.example.test").send(self.notification)

    def test_calendar_payload(self):
        with mock.patch("notifications.senders.requests.post", return_value=ok_response()) as post:
            self.assertTrue(CalendarSender(url="https://cal.example.test", timeout=2).send(self.notification))
        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://cal.example.test")
        self.assertEqual(kwargs["timeout"], 2)
        self.assertEqual(kwargs["json"]["action"], "create")
        self.assertIn("Consultation", kwargs["json"]["summary"])


@override_settings(TIME_ZONE="UTC", NOTIFICATION_CHANNELS=["email"], NOTIFICATIONS_DISPATCH_ON_COMMIT=False)
class CommandTests(TestCase):
    def setUp(self):
        self.pro = make_professional()
        self.service = default_service(self.pro)
        now = timezone.now()
        self.soon = make_booking(self.pro, self.service, now + timedelta(hours=20), email="soon@example.com")
        self.later = make_booking(self.pro, self.service, now + timedelta(hours=30), email="later@example.com")
        self.cancelled = make_booking(
            self.pro, self.service, now + timedelta(hours=10), status=Booking.CANCELLED, email="c@example.com"
        )

    def reminders(self, hours):
        return set(
            Notification.objects.filter(action="remind", payload__hours_before=hours)
            .values_list("booking_id", flat=True)
        )

    def test_send_reminders_windows(self):
        out = StringIO()
        call_command("send_reminders", "--when", "24", stdout=out)
        self.assertIn("Queued 1 reminder(s) for 24h window.", out.getvalue())
        self.assertEqual(self.reminders(24), {self.soon.pk})

        call_command("send_reminders", "--when", "48", stdout=StringIO())
        self.assertEqual(self.reminders(48), {self.soon.pk, self.later.pk})

    def test_send_reminders_only_once(self):
        call_command("send_reminders", "--when", "24", stdout=StringIO())
        out = StringIO()
        call_command("send_reminders", "--when", "24", stdout=out)
        self.assertIn("Queued 0 reminder(s)", out.getvalue())
        self.assertEqual(Notification.objects.filter(action="remind").count(), 1)

    def test_dispatch_notifications(self):
        enqueue(self.soon, "remind", extra={"hours_before": 24})
        out = StringIO()
        call_command("dispatch_notifications", stdout=out)
        # create rows for the three bookings plus the reminder
        self.assertIn("Sent=4", out.getvalue())
        self.assertFalse(Notification.objects.filter(status=Notification.PENDING).exists())
        self.assertTrue(any("Reminder" in m.subject for m in mail.outbox))
