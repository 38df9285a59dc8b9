"""
Tests for the cleanup jobs
"""

from datetime import datetime, timedelta

from villacare.models import PendingOnboarding, RateLimitEntry
from villacare.services.maintenance import cleanup_rate_limit_entries, expire_pending_onboardings


def _onboarding(cleaner, token, status="PENDING", expires_at=None):
    return PendingOnboarding(
        token=token,
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
        status=status,
        expires_at=expires_at or datetime.utcnow() + timedelta(hours=24),
    )


class TestRateLimitCleanup:
    def test_keeps_entries_inside_retention(self, db):
        now = datetime(2025, 6, 14, 3, 0)
        db.add_all(
            [
                RateLimitEntry(key="a", created_at=now - timedelta(hours=25)),
                RateLimitEntry(key="a", created_at=now - timedelta(hours=23)),
                RateLimitEntry(key="b", created_at=now - timedelta(days=3)),
            ]
        )
        db.commit()

        result = cleanup_rate_limit_entries(db, now=now)

        assert result["deleted"] == 2
        assert result["cutoff"] == (now - timedelta(hours=24)).isoformat()
        assert db.query(RateLimitEntry).count() == 1

    def test_custom_retention(self, db):
        now = datetime(2025, 6, 14, 3, 0)
        db.add(RateLimitEntry(key="a", created_at=now - timedelta(hours=2)))
        db.commit()

        result = cleanup_rate_limit_entries(db, now=now, retention=timedelta(hours=1))

        assert result["deleted"] == 1


class TestPendingOnboardingCleanup:
    def test_expires_and_purges(self, db, factory):
        cleaner = factory.cleaner()
        now = datetime.utcnow()
        db.add_all(
            [
                _onboarding(cleaner, "live", expires_at=now + timedelta(hours=5)),
                _onboarding(cleaner, "stale", expires_at=now - timedelta(hours=1)),
                _onboarding(cleaner, "ancient", status="EXPIRED", expires_at=now - timedelta(days=10)),
                _onboarding(cleaner, "done", status="COMPLETED", expires_at=now - timedelta(days=10)),
            ]
        )
        db.commit()

        result = expire_pending_onboardings(db, now=now)

        assert result == {"expired": 1, "purged": 1}
        statuses = {o.token: o.status for o in db.query(PendingOnboarding).all()}
        assert statuses == {"live": "PENDING", "stale": "EXPIRED", "done": "COMPLETED"}
