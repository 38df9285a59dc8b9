"""Cleaner router - sign-up, public profile and dashboard"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_cleaner
from ...database import get_db
from ...models import User
from ...rate_limiter import rate_limit
from .schemas import CleanerDashboardResponse, CleanerOnboarding, CleanerPublicResponse
from .service import CleanerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Cleaners"])


def get_cleaner_service(db: Session = Depends(get_db)) -> CleanerService:
    """Dependency injection for CleanerService"""
    return CleanerService(db)


@router.post("/api/onboarding/cleaner", dependencies=[Depends(rate_limit("auth"))])
async def onboard_cleaner(
    data: CleanerOnboarding,
    service: CleanerService = Depends(get_cleaner_service),
):
    cleaner = service.onboard_cleaner(data)
    return {
        "success": True,
        "cleaner": {"id": cleaner.id, "slug": cleaner.slug, "profileUrl": f"/{cleaner.slug}"},
    }


@router.get("/api/cleaners/{slug}", response_model=CleanerPublicResponse)
async def get_cleaner_profile(slug: str, service: CleanerService = Depends(get_cleaner_service)):
    """Public profile of an active cleaner with service prices"""
    return service.get_public_profile(slug)


@router.get("/api/dashboard/cleaner", response_model=CleanerDashboardResponse)
async def get_cleaner_dashboard(
    current_user: User = Depends(require_cleaner),
    service: CleanerService = Depends(get_cleaner_service),
):
    return service.get_dashboard(current_user)
