"""
Scheduled jobs exposed for the hosting platform's cron

GET /api/cron/booking-reminders   - every 10 minutes
GET /api/cron/cleanup-rate-limits - daily at 3am UTC
GET /api/cron/daily-tasks         - daily at 8am UTC
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import verify_cron_request
from ..database import get_db
from ..services.booking_notifications import process_booking_reminders
from ..services.maintenance import cleanup_rate_limit_entries, expire_pending_onboardings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["Cron"], dependencies=[Depends(verify_cron_request)])


@router.get("/booking-reminders")
async def booking_reminders(db: Session = Depends(get_db)):
    """Send reminders, escalations and auto-declines for unanswered booking requests"""
    try:
        result = await process_booking_reminders(db)
    except Exception as e:
        logger.error(f"❌ Cron booking reminders failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to process reminders")

    return {"success": True, **result, "timestamp": datetime.utcnow().isoformat()}


@router.get("/cleanup-rate-limits")
async def cleanup_rate_limits(db: Session = Depends(get_db)):
    """Delete rate limit entries older than 24 hours"""
    try:
        result = cleanup_rate_limit_entries(db)
    except Exception as e:
        logger.error(f"❌ Cron rate limit cleanup failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Cleanup failed")

    return {"success": True, **result}


@router.get("/daily-tasks")
async def daily_tasks(db: Session = Depends(get_db)):
    """Combined daily job; each task reports its own outcome"""
    results = {}

    try:
        reminder_result = await process_booking_reminders(db)
        results["reminders"] = {"success": True, **reminder_result}
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Daily task booking reminders failed: {str(e)}")
        results["reminders"] = {"success": False, "error": str(e)}

    try:
        results["rateLimitCleanup"] = {"success": True, **cleanup_rate_limit_entries(db)}
    except Exception as e:
        logger.error(f"❌ Daily task rate limit cleanup failed: {str(e)}")
        results["rateLimitCleanup"] = {"success": False, "error": str(e)}

    try:
        results["onboardingCleanup"] = {"success": True, **expire_pending_onboardings(db)}
    except Exception as e:
        logger.error(f"❌ Daily task onboarding cleanup failed: {str(e)}")
        results["onboardingCleanup"] = {"success": False, "error": str(e)}

    return {"success": True, "tasks": results, "timestamp": datetime.utcnow().isoformat()}
