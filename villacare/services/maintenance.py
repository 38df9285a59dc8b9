"""
Cleanup jobs for short-lived rows
Run daily by the cron endpoints or the ARQ worker
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .. import config
from ..models import PendingOnboarding, RateLimitEntry

logger = logging.getLogger(__name__)


def cleanup_rate_limit_entries(
    db: Session, now: Optional[datetime] = None, retention: Optional[timedelta] = None
) -> dict:
    """Delete rate limit entries older than the retention window (24h by default)"""
    now = now or datetime.utcnow()
    cutoff = now - (retention or timedelta(hours=config.RATE_LIMIT_RETENTION_HOURS))

    try:
        deleted = (
            db.query(RateLimitEntry)
            .filter(RateLimitEntry.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception as e:
        logger.error(f"❌ Rate limit cleanup failed: {str(e)}")
        db.rollback()
        raise

    logger.info(f"🧹 Cleaned up {deleted} rate limit entries older than {cutoff.isoformat()}")
    return {"deleted": deleted, "cutoff": cutoff.isoformat()}


def expire_pending_onboardings(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Mark PENDING onboardings past their expiry as EXPIRED and delete
    EXPIRED rows once they are older than the retention window.
    """
    now = now or datetime.utcnow()
    purge_before = now - timedelta(days=config.EXPIRED_ONBOARDING_RETENTION_DAYS)

    try:
        expired = (
            db.query(PendingOnboarding)
            .filter(PendingOnboarding.status == "PENDING", PendingOnboarding.expires_at < now)
            .update({"status": "EXPIRED"}, synchronize_session=False)
        )
        purged = (
            db.query(PendingOnboarding)
            .filter(PendingOnboarding.status == "EXPIRED", PendingOnboarding.expires_at < purge_before)
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception as e:
        logger.error(f"❌ Pending onboarding cleanup failed: {str(e)}")
        db.rollback()
        raise

    if expired or purged:
        logger.info(f"🧹 Pending onboardings: {expired} expired, {purged} purged")
    return {"expired": expired, "purged": purged}
