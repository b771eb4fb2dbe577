# booking/tests/test_services_api.py

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from booking.models import Booking, Service
from booking.services.catalog import ServiceCatalog

from .helpers import default_service, make_booking, make_professional
from .test_api import assert_envelope


@override_settings(TIME_ZONE="UTC")
class ServiceApiTests(TestCase):
    def setUp(self):
        self.pro = make_professional()
        self.service = default_service(self.pro)
        self.client = APIClient()
        self.client.force_authenticate(user=self.pro.user)

    def test_create_and_list(self):
        resp = self.client.post(
            "/api/services/",
            {"name": "Deep Tissue", "description": "90 minute massage", "duration_minutes": 90, "price": "120.00"},
            format="json",
        )
        self.assertEqual(resp.status_code, 201, resp.content)
        created = Service.objects.get(pk=resp.json()["id"])
        self.assertEqual(created.professional, self.pro)
        self.assertEqual(created.price, Decimal("120.00"))

        names = [s["name"] for s in self.client.get("/api/services/").json()]
        self.assertCountEqual(names, ["Consultation", "Deep Tissue"])

    def test_list_hides_other_tenants(self):
        other = make_professional(email="other@example.com")
        foreign = default_service(other)
        ids = [s["id"] for s in self.client.get("/api/services/").json()]
        self.assertEqual(ids, [self.service.pk])
        assert_envelope(self, self.client.get(f"/api/services/{foreign.pk}/"), 404, "NOT_FOUND")

    def test_bounds(self):
        for payload in (
            {"name": "Too short", "duration_minutes": 10, "price": "10.00"},
            {"name": "Too long", "duration_minutes": 481, "price": "10.00"},
            {"name": "Too pricey", "duration_minutes": 30, "price": "10000.01"},
            {"name": "Negative", "duration_minutes": 30, "price": "-1.00"},
            {"name": "   ", "duration_minutes": 30, "price": "10.00"},
        ):
            resp = self.client.post("/api/services/", payload, format="json")
            assert_envelope(self, resp, 400, "VALIDATION_ERROR")

        for duration, price in ((15, "0.00"), (480, "10000.00")):
            resp = self.client.post(
                "/api/services/",
                {"name": f"Edge {duration}", "duration_minutes": duration, "price": price},
                format="json",
            )
            self.assertEqual(resp.status_code, 201, resp.content)

    def test_duplicate_name_is_rejected(self):
        resp = self.client.post(
            "/api/services/", {"name": "consultation", "duration_minutes": 30, "price": "10.00"}, format="json"
        )
        assert_envelope(self, resp, 409, "DUPLICATE_ERROR")

    def test_same_name_allowed_for_other_professional(self):
        other = make_professional(email="other@example.com")
        client = APIClient()
        client.force_authenticate(user=other.user)
        resp = client.post(
            "/api/services/", {"name": "Massage", "duration_minutes": 30, "price": "10.00"}, format="json"
        )
        self.assertEqual(resp.status_code, 201)
        resp = self.client.post(
            "/api/services/", {"name": "Massage", "duration_minutes": 30, "price": "10.00"}, format="json"
        )
        self.assertEqual(resp.status_code, 201)

    def test_rename_keeps_own_name(self):
        resp = self.client.patch(
            f"/api/services/{self.service.pk}/", {"name": "Consultation", "price": "55.00"}, format="json"
        )
        self.assertEqual(resp.status_code, 200, resp.content)
        self.service.refresh_from_db()
        self.assertEqual(self.service.price, Decimal("55.00"))

    def test_delete_without_future_bookings(self):
        past = timezone.now() - timedelta(days=2)
        make_booking(self.pro, self.service, past, status=Booking.COMPLETED)
        make_booking(self.pro, self.service, timezone.now() + timedelta(days=2), status=Booking.CANCELLED)

        resp = self.client.delete(f"/api/services/{self.service.pk}/")
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertFalse(Service.objects.filter(pk=self.service.pk).exists())

    def test_delete_with_future_booking_is_refused(self):
        make_booking(self.pro, self.service, timezone.now() + timedelta(days=2), status=Booking.PENDING)
        body = assert_envelope(
            self, self.client.delete(f"/api/services/{self.service.pk}/"), 409, "SERVICE_HAS_ACTIVE_BOOKINGS"
        )
        self.assertEqual(body["details"]["active_bookings"], 1)
        self.assertTrue(Service.objects.filter(pk=self.service.pk).exists())

    def test_deactivate_with_future_booking_is_refused(self):
        make_booking(self.pro, self.service, timezone.now() + timedelta(days=2), status=Booking.CONFIRMED)
        resp = self.client.patch(f"/api/services/{self.service.pk}/", {"active": False}, format="json")
        assert_envelope(self, resp, 409, "SERVICE_HAS_ACTIVE_BOOKINGS")
        self.service.refresh_from_db()
        self.assertTrue(self.service.active)

    def test_deactivate_without_future_bookings(self):
        resp = self.client.patch(f"/api/services/{self.service.pk}/", {"active": False}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.service.refresh_from_db()
        self.assertFalse(self.service.active)


class ServiceCatalogTests(TestCase):
    def test_seed_defaults_is_idempotent(self):
        pro = make_professional()
        ServiceCatalog.seed_defaults(pro)
        self.assertEqual(pro.services.count(), 1)
        self.assertEqual(pro.availability_rules.count(), 5)
