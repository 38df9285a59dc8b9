"""Admin router - every endpoint requires an ADMIN session"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from ... import config
from ...audit import get_audit_logs, log_audit
from ...auth import get_optional_user, get_session_admin, issue_session_token, read_session_token, require_admin
from ...database import get_db
from ...models import User
from ...rate_limiter import rate_limit
from .repository import AdminRepository
from .schemas import (
    CleanerUpdate,
    FeedbackCreate,
    FeedbackUpdate,
    ImpersonateRequest,
    ReviewModeration,
    SettingsUpdate,
)
from .service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

# Feedback submission is open to everyone, so it lives outside the admin prefix
feedback_router = APIRouter(tags=["Feedback"])


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    return AdminService(db)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        max_age=config.SESSION_MAX_AGE,
        httponly=True,
        secure=config.IS_PRODUCTION,
        samesite="lax",
        path="/",
    )


@router.get("/stats")
async def get_stats(
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return {"stats": service.get_stats()}


# ============================================================================
# CLEANERS
# ============================================================================


@router.get("/cleaners")
async def list_cleaners(
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return {"cleaners": service.list_cleaners()}


@router.patch("/cleaners/{cleaner_id}")
async def update_cleaner(
    cleaner_id: str,
    data: CleanerUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    """approve / suspend / activate, toggle team leader, or edit contact details"""
    cleaner = service.update_cleaner(current_user, cleaner_id, data, request)
    return {"success": True, "cleaner": cleaner}


@router.delete("/cleaners/{cleaner_id}")
async def delete_cleaner(
    cleaner_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    service.delete_cleaner(current_user, cleaner_id, request)
    return {"success": True}


# ============================================================================
# BOOKINGS, REVIEWS, SETTINGS
# ============================================================================


@router.get("/bookings")
async def list_bookings(
    status: Optional[str] = Query(None),
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return {"bookings": service.list_bookings(status)}


@router.patch("/reviews/{review_id}")
async def moderate_review(
    review_id: str,
    data: ReviewModeration,
    request: Request,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return {"success": True, "review": service.moderate_review(current_user, review_id, data, request)}


@router.get("/settings")
async def get_settings(
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return {"settings": service.get_settings()}


@router.patch("/settings")
async def update_settings(
    data: SettingsUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return {"settings": service.update_settings(current_user, data, request)}


@router.get("/audit")
async def list_audit_logs(
    user_id: Optional[str] = Query(None, alias="userId"),
    action: Optional[str] = Query(None),
    target_type: Optional[str] = Query(None, alias="targetType"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return get_audit_logs(db, user_id, action, target_type, start_date, end_date, page, limit)


# ============================================================================
# FEEDBACK
# ============================================================================


@router.get("/feedback")
async def list_feedback(
    status: Optional[str] = Query(None),
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return {"feedback": service.list_feedback(status)}


@router.patch("/feedback/{feedback_id}")
async def update_feedback(
    feedback_id: str,
    data: FeedbackUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return {"success": True, "feedback": service.update_feedback(current_user, feedback_id, data, request)}


@feedback_router.post("/api/feedback", dependencies=[Depends(rate_limit("message"))])
async def submit_feedback(
    data: FeedbackCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AdminService = Depends(get_admin_service),
):
    feedback = service.create_feedback(data, current_user)
    return {"success": True, "id": feedback.id}


# ============================================================================
# IMPERSONATION
# ============================================================================


@router.post("/impersonate")
async def start_impersonation(
    data: ImpersonateRequest,
    request: Request,
    response: Response,
    admin: User = Depends(get_session_admin),
    db: Session = Depends(get_db),
):
    """View the app as a cleaner; the session keeps the admin as its owner"""
    cleaner = AdminRepository.get_cleaner(db, data.cleanerId)
    if not cleaner:
        raise HTTPException(status_code=404, detail="Cleaner not found")

    _set_session_cookie(response, issue_session_token(admin.id, impersonating=cleaner.user_id))
    log_audit(db, admin.id, "IMPERSONATE_START", cleaner.user_id, "USER", {"cleanerId": cleaner.id}, request)
    logger.info(f"🎭 Admin {admin.id} impersonating cleaner {cleaner.id}")
    return {
        "success": True,
        "message": f"Now viewing as {cleaner.user.name}",
        "redirectTo": "/dashboard",
    }


@router.delete("/impersonate")
async def stop_impersonation(
    request: Request,
    response: Response,
    admin: User = Depends(get_session_admin),
    db: Session = Depends(get_db),
):
    session = read_session_token(request.cookies.get(config.SESSION_COOKIE_NAME, ""))
    impersonated = session.get("impersonating") if session else None
    if not impersonated:
        raise HTTPException(status_code=400, detail="Not currently impersonating")

    _set_session_cookie(response, issue_session_token(admin.id))
    log_audit(db, admin.id, "IMPERSONATE_STOP", impersonated, "USER", None, request)
    return {"success": True, "message": "Impersonation ended", "redirectTo": "/admin"}
