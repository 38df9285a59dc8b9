"""
Database-backed rate limiting utilities
Uses the rate_limit_entries table as a sliding window so limits hold across
stateless request handlers. Old rows are removed by the cleanup cron.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .database import get_db
from .models import RateLimitEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window: timedelta


RATE_LIMITS = {
    # Auth: Prevent credential stuffing
    "auth": RateLimitConfig(10, timedelta(minutes=15)),
    # Bookings: Prevent spam
    "booking": RateLimitConfig(10, timedelta(minutes=1)),
    # Messages: Prevent spam
    "message": RateLimitConfig(30, timedelta(minutes=1)),
}


@dataclass
class RateLimitResult:
    success: bool
    remaining: int
    reset: datetime
    retry_after: Optional[int] = None  # Seconds until the caller can retry


def _evaluate(
    db: Session, identifier: str, endpoint: str, limit: RateLimitConfig, now: datetime
) -> RateLimitResult:
    window_start = now - limit.window
    key = f"{endpoint}:{identifier}"

    request_count = (
        db.query(RateLimitEntry)
        .filter(RateLimitEntry.key == key, RateLimitEntry.created_at >= window_start)
        .count()
    )

    if request_count >= limit.max_requests:
        oldest_in_window = (
            db.query(RateLimitEntry)
            .filter(RateLimitEntry.key == key, RateLimitEntry.created_at >= window_start)
            .order_by(RateLimitEntry.created_at.asc())
            .first()
        )
        reset_time = (
            oldest_in_window.created_at + limit.window if oldest_in_window else now + limit.window
        )
        return RateLimitResult(
            success=False,
            remaining=0,
            reset=reset_time,
            retry_after=max(1, math.ceil((reset_time - now).total_seconds())),
        )

    db.add(RateLimitEntry(key=key, created_at=now))
    # Drop this key's rows that fell out of the window
    db.query(RateLimitEntry).filter(
        RateLimitEntry.key == key, RateLimitEntry.created_at < window_start
    ).delete(synchronize_session=False)
    db.commit()

    return RateLimitResult(
        success=True,
        remaining=limit.max_requests - request_count - 1,
        reset=now + limit.window,
    )


def check_rate_limit(
    db: Session, identifier: str, endpoint: str, limit: RateLimitConfig, now: Optional[datetime] = None
) -> RateLimitResult:
    """Check and record a request. Fails open if the database errors."""
    now = now or datetime.utcnow()
    try:
        return _evaluate(db, identifier, endpoint, limit, now)
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Rate limit check failed (allowing request): {e}")
        return RateLimitResult(success=True, remaining=limit.max_requests, reset=now + limit.window)


def check_rate_limit_strict(
    db: Session, identifier: str, endpoint: str, limit: RateLimitConfig, now: Optional[datetime] = None
) -> RateLimitResult:
    """Check and record a request. Fails closed for security-critical endpoints."""
    now = now or datetime.utcnow()
    try:
        return _evaluate(db, identifier, endpoint, limit, now)
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Rate limit check failed (strict mode - denying): {e}")
        return RateLimitResult(
            success=False, remaining=0, reset=now + timedelta(seconds=60), retry_after=60
        )


def get_client_identifier(request: Request) -> str:
    """Client IP from proxy headers, falling back to the socket peer"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    vercel_ip = request.headers.get("x-vercel-forwarded-for")
    if vercel_ip:
        return vercel_ip.split(",")[0].strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    headers = {
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": result.reset.isoformat(),
    }
    if result.retry_after:
        headers["Retry-After"] = str(result.retry_after)
    return headers


def rate_limit(name: str, strict: bool = False):
    """Dependency factory enforcing one of RATE_LIMITS on a route (429 when exceeded)"""
    limit = RATE_LIMITS[name]
    checker = check_rate_limit_strict if strict else check_rate_limit

    async def dependency(request: Request, db: Session = Depends(get_db)) -> RateLimitResult:
        identifier = get_client_identifier(request)
        result = checker(db, identifier, request.url.path, limit)
        if not result.success:
            logger.warning(f"⚠️ Rate limit exceeded: {name} for {identifier} on {request.url.path}")
            raise HTTPException(
                status_code=429,
                detail="Too many requests. Please try again later.",
                headers=rate_limit_headers(result),
            )
        return result

    return dependency
