from django.test import TestCase
from rest_framework.test import APIClient

from availability.models import AvailabilityRule
from booking.tests.helpers import make_professional


class AvailabilityApiTests(TestCase):
    def setUp(self):
        self.pro = make_professional()
        self.client = APIClient()
        self.client.force_authenticate(user=self.pro.user)

    def test_lists_seeded_week(self):
        resp = self.client.get("/api/availability/")
        self.assertEqual(resp.status_code, 200)
        days = [(r["day_of_week"], r["start_time"], r["end_time"]) for r in resp.json()]
        self.assertEqual(days, [(d, "09:00", "17:00") for d in (1, 2, 3, 4, 5)])

    def test_replace_all(self):
        payload = {
            "working_days": [
                {"day_of_week": 6, "start_time": "10:00", "end_time": "14:00"},
                {"day_of_week": 2, "start_time": "13:00", "end_time": "18:00"},
                {"day_of_week": 2, "start_time": "08:00", "end_time": "12:00"},
            ]
        }
        resp = self.client.post("/api/availability/", payload, format="json")
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertEqual(resp.json()["count"], 3)

        rows = list(
            AvailabilityRule.objects.filter(professional=self.pro)
            .order_by("day_of_week", "start_time")
            .values_list("day_of_week", "start_time")
        )
        self.assertEqual(rows, [(2, "08:00"), (2, "13:00"), (6, "10:00")])

    def test_empty_list_clears_week(self):
        resp = self.client.post("/api/availability/", {"working_days": []}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(AvailabilityRule.objects.filter(professional=self.pro).exists())

    def test_invalid_window_keeps_existing_rules(self):
        for window in (
            {"day_of_week": 1, "start_time": "17:00", "end_time": "09:00"},
            {"day_of_week": 1, "start_time": "9:00", "end_time": "17:00"},
            {"day_of_week": 7, "start_time": "09:00", "end_time": "17:00"},
        ):
            resp = self.client.post("/api/availability/", {"working_days": [window]}, format="json")
            self.assertEqual(resp.status_code, 400, window)
            self.assertEqual(resp.json()["code"], "VALIDATION_ERROR")
        self.assertEqual(AvailabilityRule.objects.filter(professional=self.pro).count(), 5)

    def test_other_tenant_rules_untouched(self):
        other = make_professional(email="other@example.com")
        self.client.post("/api/availability/", {"working_days": []}, format="json")
        self.assertEqual(AvailabilityRule.objects.filter(professional=other).count(), 5)

    def test_requires_authentication(self):
        resp = APIClient().get("/api/availability/")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "AUTHENTICATION_ERROR")
