"""
Tests for the /api/cron endpoints and their authorization
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from villacare import config
from villacare.models import PendingOnboarding, RateLimitEntry


@pytest.fixture
def cron_secret(monkeypatch):
    monkeypatch.setattr(config, "CRON_SECRET", "s3cret")
    return "s3cret"


class TestCronAuthorization:
    def test_open_without_secret_outside_production(self, client, monkeypatch):
        monkeypatch.setattr(config, "IS_PRODUCTION", False)
        response = client.get("/api/cron/booking-reminders")
        assert response.status_code == 200

    def test_closed_without_secret_in_production(self, client, monkeypatch):
        monkeypatch.setattr(config, "IS_PRODUCTION", True)
        response = client.get("/api/cron/booking-reminders")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_bearer_secret_accepted(self, client, cron_secret):
        response = client.get(
            "/api/cron/booking-reminders", headers={"Authorization": f"Bearer {cron_secret}"}
        )
        assert response.status_code == 200

    def test_wrong_secret_rejected(self, client, cron_secret):
        response = client.get("/api/cron/booking-reminders", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_trusted_platform_header_accepted(self, client, cron_secret):
        response = client.get("/api/cron/cleanup-rate-limits", headers={"x-vercel-cron": "1"})
        assert response.status_code == 200

    def test_trusted_header_must_be_one(self, client, cron_secret):
        response = client.get("/api/cron/cleanup-rate-limits", headers={"x-vercel-cron": "true"})
        assert response.status_code == 401


class TestBookingRemindersEndpoint:
    def test_returns_summary(self, client, factory):
        cleaner = factory.cleaner()
        factory.tracker(factory.booking(cleaner), age=timedelta(minutes=90))

        body = client.get("/api/cron/booking-reminders").json()

        assert body["success"] is True
        assert body["processed"] == 1
        assert body["reminders"] == 1
        assert "timestamp" in body

    def test_failure_returns_500(self, client):
        with patch(
            "villacare.routes.cron.process_booking_reminders",
            new=AsyncMock(side_effect=RuntimeError("db gone")),
        ):
            response = client.get("/api/cron/booking-reminders")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process reminders"}


class TestCleanupEndpoints:
    def test_cleanup_rate_limits_deletes_old_entries(self, client, db):
        now = datetime.utcnow()
        db.add_all(
            [
                RateLimitEntry(key="/api/bookings:1.2.3.4", created_at=now - timedelta(hours=30)),
                RateLimitEntry(key="/api/bookings:1.2.3.4", created_at=now - timedelta(minutes=5)),
            ]
        )
        db.commit()

        body = client.get("/api/cron/cleanup-rate-limits").json()

        assert body["success"] is True
        assert body["deleted"] == 1
        assert db.query(RateLimitEntry).count() == 1

    def test_daily_tasks_reports_each_task(self, client, db, factory):
        cleaner = factory.cleaner()
        db.add(
            PendingOnboarding(
                token="t" * 64,
                cleaner_id=cleaner.id,
                visitor_name="Vera",
                visitor_phone="+34600000000",
                bedrooms=2,
                bathrooms=1,
                service_type="regular",
                service_price=60,
                service_hours=3,
                preferred_date=datetime.utcnow().date(),
                preferred_time="10:00",
                status="PENDING",
                expires_at=datetime.utcnow() - timedelta(hours=1),
            )
        )
        db.commit()

        body = client.get("/api/cron/daily-tasks").json()

        assert body["success"] is True
        tasks = body["tasks"]
        assert tasks["reminders"]["success"] is True
        assert tasks["rateLimitCleanup"]["success"] is True
        assert tasks["onboardingCleanup"] == {"success": True, "expired": 1, "purged": 0}

    def test_daily_tasks_isolates_failures(self, client):
        with patch(
            "villacare.routes.cron.process_booking_reminders",
            new=AsyncMock(side_effect=RuntimeError("boom")),
        ):
            body = client.get("/api/cron/daily-tasks").json()

        assert body["tasks"]["reminders"] == {"success": False, "error": "boom"}
        assert body["tasks"]["rateLimitCleanup"]["success"] is True
