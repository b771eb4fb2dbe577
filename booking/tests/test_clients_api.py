# booking/tests/test_clients_api.py

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from booking.models import Booking, Client, Service

from .helpers import default_service, make_booking, make_professional
from .test_api import assert_envelope

UTC = dt_timezone.utc
START = datetime(2030, 1, 7, 9, 0, tzinfo=UTC)


@override_settings(TIME_ZONE="UTC", NOTIFICATION_CHANNELS=[])
class ClientApiTests(TestCase):
    def setUp(self):
        self.pro = make_professional()
        self.consultation = default_service(self.pro)  # 50.00
        self.massage = Service.objects.create(
            professional=self.pro, name="Massage", duration_minutes=60, price="120.00"
        )
        self.client = APIClient()
        self.client.force_authenticate(user=self.pro.user)

        self.regular = Client.objects.create(
            professional=self.pro, name="Robin Regular", email="robin@example.com", total_bookings=4
        )
        self.occasional = Client.objects.create(
            professional=self.pro, name="Olive Occasional", email="olive@example.com", total_bookings=1
        )
        self.newcomer = Client.objects.create(professional=self.pro, name="Nico New", email="nico@example.com")

    def book(self, client, service, hours, status):
        return make_booking(
            self.pro, service, START + timedelta(hours=hours), status=status, email=client.email, client=client
        )

    def test_total_spent_counts_completed_bookings_only(self):
        self.book(self.regular, self.consultation, 0, Booking.COMPLETED)
        self.book(self.regular, self.massage, 2, Booking.COMPLETED)
        self.book(self.regular, self.massage, 4, Booking.CANCELLED)
        self.book(self.regular, self.massage, 6, Booking.PENDING)
        self.book(self.occasional, self.consultation, 8, Booking.COMPLETED)

        resp = self.client.get("/api/clients/")
        self.assertEqual(resp.status_code, 200)
        rows = resp.json()
        self.assertEqual(
            [(c["email"], c["total_spent"]) for c in rows],
            [
                ("robin@example.com", "170.00"),
                ("olive@example.com", "50.00"),
                ("nico@example.com", "0.00"),
            ],
        )

    def test_spend_ordering_beats_recency(self):
        self.book(self.occasional, self.massage, 0, Booking.COMPLETED)
        Client.objects.filter(pk=self.regular.pk).update(last_booking_at=START + timedelta(days=30))

        emails = [c["email"] for c in self.client.get("/api/clients/").json()]
        self.assertEqual(emails[0], "olive@example.com")

    def test_retrieve_includes_spend_and_notes(self):
        self.book(self.regular, self.massage, 0, Booking.COMPLETED)
        self.regular.notes = "prefers mornings"
        self.regular.save()

        resp = self.client.get(f"/api/clients/{self.regular.pk}/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["total_spent"], "120.00")
        self.assertEqual(resp.json()["notes"], "prefers mornings")

    def test_update_notes(self):
        resp = self.client.patch(
            f"/api/clients/{self.regular.pk}/notes/", {"notes": "  allergic to lavender  "}, format="json"
        )
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertEqual(resp.json()["notes"], "allergic to lavender")
        self.regular.refresh_from_db()
        self.assertEqual(self.regular.notes, "allergic to lavender")

    def test_null_notes_clear(self):
        Client.objects.filter(pk=self.regular.pk).update(notes="old")
        resp = self.client.patch(f"/api/clients/{self.regular.pk}/notes/", {"notes": None}, format="json")
        self.assertEqual(resp.status_code, 200, resp.content)
        self.regular.refresh_from_db()
        self.assertEqual(self.regular.notes, "")

    def test_update_notes_requires_field(self):
        resp = self.client.patch(f"/api/clients/{self.regular.pk}/notes/", {}, format="json")
        body = assert_envelope(self, resp, 400, "VALIDATION_ERROR")
        self.assertIn("notes", body["details"])

    def test_other_tenant_client_is_not_found(self):
        other = make_professional(email="other@example.com")
        foreign = Client.objects.create(professional=other, name="Hidden", email="hidden@example.com", notes="keep")

        assert_envelope(self, self.client.get(f"/api/clients/{foreign.pk}/"), 404, "NOT_FOUND")
        resp = self.client.patch(f"/api/clients/{foreign.pk}/notes/", {"notes": "overwrite"}, format="json")
        assert_envelope(self, resp, 404, "NOT_FOUND")
        foreign.refresh_from_db()
        self.assertEqual(foreign.notes, "keep")

    def test_notes_requires_authentication(self):
        resp = APIClient().patch(f"/api/clients/{self.regular.pk}/notes/", {"notes": "x"}, format="json")
        assert_envelope(self, resp, 401, "AUTHENTICATION_ERROR")

    def test_spend_is_tenant_scoped(self):
        other = make_professional(email="other@example.com")
        other_client = Client.objects.create(professional=other, name="Robin", email="robin@example.com")
        make_booking(other, default_service(other), START, status=Booking.COMPLETED, client=other_client)

        rows = {c["email"]: c for c in self.client.get("/api/clients/").json()}
        self.assertEqual(rows["robin@example.com"]["total_spent"], "0.00")
        self.assertEqual(Client.objects.with_spend().get(pk=other_client.pk).total_spent, Decimal("50.00"))
