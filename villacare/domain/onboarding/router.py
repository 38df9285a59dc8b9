"""Pending onboarding router - magic link flow for new owners"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ... import config
from ...auth import issue_session_token
from ...database import get_db
from ...rate_limiter import rate_limit
from .schemas import PendingOnboardingConfirm, PendingOnboardingCreate
from .service import OnboardingService, magic_link

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/onboarding/pending", tags=["Onboarding"])


def get_onboarding_service(db: Session = Depends(get_db)) -> OnboardingService:
    return OnboardingService(db)


@router.post("", dependencies=[Depends(rate_limit("booking"))])
async def create_pending_onboarding(
    data: PendingOnboardingCreate,
    service: OnboardingService = Depends(get_onboarding_service),
):
    onboarding = await service.create(data)
    return {
        "success": True,
        "onboardingId": onboarding.id,
        "magicLink": magic_link(onboarding.token),
        "message": f"Magic link created for {onboarding.visitor_name}",
    }


@router.get("/{token}")
async def get_pending_onboarding(token: str, service: OnboardingService = Depends(get_onboarding_service)):
    return service.get_details(token)


@router.post("/{token}/confirm", dependencies=[Depends(rate_limit("auth", strict=True))])
async def confirm_pending_onboarding(
    token: str,
    data: PendingOnboardingConfirm,
    response: Response,
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Create the account and booking, then sign the visitor in"""
    result, user = await service.confirm(token, data)
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=issue_session_token(user.id),
        max_age=config.SESSION_MAX_AGE,
        httponly=True,
        secure=config.IS_PRODUCTION,
        samesite="lax",
        path="/",
    )
    return result
