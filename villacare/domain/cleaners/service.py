"""Cleaner service - Business logic for cleaner sign-up and profiles"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Cleaner, User
from ...shared.codes import slug_candidate
from ...shared.pricing import priced_services
from .repository import CleanerRepository
from .schemas import CleanerOnboarding

logger = logging.getLogger(__name__)

MAX_SLUG_ATTEMPTS = 10


def profile_payload(cleaner: Cleaner) -> dict:
    return {
        "id": cleaner.id,
        "slug": cleaner.slug,
        "status": cleaner.status,
        "bio": cleaner.bio,
        "serviceAreas": cleaner.service_areas or [],
        "hourlyRate": cleaner.hourly_rate,
        "rating": cleaner.rating,
        "reviewCount": cleaner.review_count,
        "totalBookings": cleaner.total_bookings,
        "teamLeader": cleaner.team_leader,
        "name": cleaner.user.name,
        "photo": cleaner.user.image,
        "phone": cleaner.user.phone,
    }


class CleanerService:
    """Service layer for cleaner business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CleanerRepository()

    def _unique_slug(self, name: str) -> str:
        for attempt in range(MAX_SLUG_ATTEMPTS + 1):
            slug = slug_candidate(name, attempt)
            if not self.repo.slug_taken(self.db, slug):
                return slug
            logger.debug(f"Slug {slug} taken (attempt {attempt})")
        logger.warning(f"⚠️ Could not find a free slug for {name!r}")
        raise HTTPException(status_code=400, detail="Could not generate a unique profile link")

    def onboard_cleaner(self, data: CleanerOnboarding) -> Cleaner:
        """Create a CLEANER user and an ACTIVE cleaner profile"""
        if self.repo.phone_taken(self.db, data.phone):
            raise HTTPException(status_code=400, detail="A user with this phone number already exists")

        slug = self._unique_slug(data.name)
        cleaner = self.repo.create_cleaner_account(
            self.db,
            user_data={
                "name": data.name,
                "phone": data.phone,
                "email": data.email,
                "image": data.photoUrl,
                "phone_verified_at": datetime.utcnow(),
            },
            cleaner_data={
                "slug": slug,
                "bio": data.bio,
                "reviews_link": data.reviewsLink,
                "service_areas": data.serviceAreas,
                "hourly_rate": data.hourlyRate,
                "status": "ACTIVE",
                "rating": 5.0,
                "review_count": 0,
                "total_bookings": 0,
            },
        )
        logger.info(f"✅ Cleaner {cleaner.id} onboarded with slug {slug}")
        return cleaner

    def get_public_profile(self, slug: str) -> dict:
        cleaner = self.repo.get_by_slug(self.db, slug)
        if not cleaner or cleaner.status != "ACTIVE":
            raise HTTPException(status_code=404, detail="Cleaner not found")

        return {
            "id": cleaner.id,
            "slug": cleaner.slug,
            "name": cleaner.user.name,
            "photo": cleaner.user.image,
            "rating": cleaner.rating,
            "reviewCount": cleaner.review_count,
            "areas": cleaner.service_areas or [],
            "hourlyRate": cleaner.hourly_rate,
            "bio": cleaner.bio,
            "reviewsLink": cleaner.reviews_link,
            "teamLeader": cleaner.team_leader,
            "services": priced_services(cleaner.hourly_rate),
        }

    def get_dashboard(self, user: User, today: Optional[date] = None) -> dict:
        """Profile plus this week's bookings and earnings and this month's completed count"""
        cleaner = self.repo.get_by_user_id(self.db, user.id)
        if not cleaner:
            raise HTTPException(status_code=404, detail="Cleaner profile not found")

        today = today or datetime.utcnow().date()
        next_week = today + timedelta(days=7)
        month_start = today.replace(day=1)

        bookings = self.repo.bookings_since(self.db, cleaner.id, month_start)
        this_week = [b for b in bookings if today <= b.date < next_week]
        completed_this_month = sum(1 for b in bookings if b.status == "COMPLETED")

        return {
            "cleaner": profile_payload(cleaner),
            "stats": {
                "thisWeekEarnings": sum(b.price for b in this_week),
                "thisWeekBookings": len(this_week),
                "completedThisMonth": completed_this_month,
            },
        }
