"""
Tests for the database-backed rate limiter
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

from villacare.rate_limiter import (
    RATE_LIMITS,
    RateLimitConfig,
    check_rate_limit,
    check_rate_limit_strict,
    get_client_identifier,
)

LIMIT = RateLimitConfig(3, timedelta(minutes=1))


class TestCheckRateLimit:
    def test_allows_up_to_limit_then_blocks(self, db):
        now = datetime(2025, 6, 14, 12, 0)
        results = [check_rate_limit(db, "1.2.3.4", "/api/bookings", LIMIT, now=now) for _ in range(4)]

        assert [r.success for r in results] == [True, True, True, False]
        assert [r.remaining for r in results[:3]] == [2, 1, 0]
        blocked = results[-1]
        assert blocked.reset == now + LIMIT.window
        assert blocked.retry_after == 60

    def test_window_slides(self, db):
        start = datetime(2025, 6, 14, 12, 0)
        for _ in range(3):
            check_rate_limit(db, "1.2.3.4", "/api/bookings", LIMIT, now=start)

        later = start + timedelta(minutes=1, seconds=1)
        assert check_rate_limit(db, "1.2.3.4", "/api/bookings", LIMIT, now=later).success

    def test_keys_are_per_client_and_endpoint(self, db):
        now = datetime(2025, 6, 14, 12, 0)
        for _ in range(3):
            check_rate_limit(db, "1.2.3.4", "/api/bookings", LIMIT, now=now)

        assert check_rate_limit(db, "5.6.7.8", "/api/bookings", LIMIT, now=now).success
        assert check_rate_limit(db, "1.2.3.4", "/api/feedback", LIMIT, now=now).success

    def test_fails_open_on_database_error(self):
        broken = MagicMock()
        broken.query.side_effect = RuntimeError("db down")

        result = check_rate_limit(broken, "1.2.3.4", "/api/bookings", LIMIT)

        assert result.success is True
        broken.rollback.assert_called_once()

    def test_strict_fails_closed_on_database_error(self):
        broken = MagicMock()
        broken.query.side_effect = RuntimeError("db down")

        result = check_rate_limit_strict(broken, "1.2.3.4", "/api/auth", RATE_LIMITS["auth"])

        assert result.success is False
        assert result.retry_after == 60

    def test_presets(self):
        assert {name: (c.max_requests, c.window) for name, c in RATE_LIMITS.items()} == {
            "auth": (10, timedelta(minutes=15)),
            "booking": (10, timedelta(minutes=1)),
            "message": (30, timedelta(minutes=1)),
        }


class TestClientIdentifier:
    def _request(self, headers=None, host="10.0.0.1"):
        request = MagicMock()
        request.headers = headers or {}
        request.client.host = host
        return request

    def test_forwarded_for_first_hop(self):
        request = self._request({"x-forwarded-for": "203.0.113.5, 10.0.0.2"})
        assert get_client_identifier(request) == "203.0.113.5"

    def test_real_ip(self):
        assert get_client_identifier(self._request({"x-real-ip": "203.0.113.6"})) == "203.0.113.6"

    def test_socket_peer_fallback(self):
        assert get_client_identifier(self._request()) == "10.0.0.1"

    def test_unknown(self):
        request = self._request()
        request.client = None
        assert get_client_identifier(request) == "unknown"


class TestRateLimitDependency:
    def test_booking_endpoint_returns_429(self, client, factory):
        factory.cleaner(slug="maria")
        payload = {"cleanerSlug": "nobody"}
        codes = [client.post("/api/bookings", json=payload).status_code for _ in range(11)]

        # Validation runs after the limiter records each attempt
        assert codes[:10] == [400] * 10
        assert codes[10] == 429
