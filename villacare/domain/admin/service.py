"""Admin service - platform KPIs, cleaner moderation and settings"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from ...audit import log_audit
from ...models import Feedback, User
from ..bookings.repository import BookingRepository
from ..bookings.service import serialize_booking
from .repository import AdminRepository
from .schemas import CleanerUpdate, FeedbackCreate, FeedbackUpdate, ReviewModeration, SettingsUpdate

logger = logging.getLogger(__name__)

STATUS_ACTIONS = {
    "approve": ("ACTIVE", "APPROVE_CLEANER"),
    "suspend": ("SUSPENDED", "SUSPEND_CLEANER"),
    "activate": ("ACTIVE", "ACTIVATE_CLEANER"),
}


def settings_payload(settings) -> dict:
    return {
        "teamLeaderHoursRequired": settings.team_leader_hours_required,
        "teamLeaderRatingRequired": settings.team_leader_rating_required,
        "updatedAt": settings.updated_at,
    }


def feedback_payload(feedback: Feedback) -> dict:
    return {
        "id": feedback.id,
        "category": feedback.category,
        "mood": feedback.mood,
        "message": feedback.message,
        "page": feedback.page,
        "status": feedback.status.lower(),
        "userId": feedback.user_id,
        "createdAt": feedback.created_at,
    }


class AdminService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = AdminRepository()

    def get_stats(self, now: Optional[datetime] = None) -> dict:
        """Platform KPIs for the admin dashboard"""
        now = now or datetime.utcnow()
        month_start = datetime(now.year, now.month, 1)

        cleaners = self.repo.cleaner_counts(self.db)
        total_reviews, average_rating = self.repo.approved_review_stats(self.db)

        return {
            "totalCleaners": cleaners["total"],
            "activeCleaners": cleaners["active"],
            "pendingApplications": cleaners["pending"],
            "suspendedCleaners": cleaners["suspended"],
            "totalBookings": self.repo.booking_count(self.db),
            "thisMonthBookings": self.repo.booking_count(self.db, since=month_start),
            "totalRevenue": self.repo.completed_revenue(self.db),
            "thisMonthRevenue": self.repo.completed_revenue(self.db, since=month_start),
            "totalReviews": total_reviews,
            "averageRating": round(average_rating, 1),
        }

    def list_cleaners(self) -> list[dict]:
        return [
            {
                "id": c.id,
                "name": c.user.name or "Unknown",
                "slug": c.slug,
                "phone": c.user.phone or "",
                "email": c.user.email or "",
                "photo": c.user.image,
                "status": c.status.lower(),
                "joinedAt": c.created_at,
                "areas": c.service_areas or [],
                "hourlyRate": c.hourly_rate,
                "totalBookings": c.total_bookings,
                "rating": c.rating or 0,
                "reviewCount": c.review_count,
                "teamLeader": c.team_leader,
            }
            for c in self.repo.list_cleaners(self.db)
        ]

    def update_cleaner(self, admin: User, cleaner_id: str, data: CleanerUpdate, request: Request) -> dict:
        cleaner = self.repo.get_cleaner(self.db, cleaner_id)
        if not cleaner:
            raise HTTPException(status_code=404, detail="Cleaner not found")

        if data.action == "edit":
            updates = {}
            if data.name and data.name.strip():
                updates["name"] = data.name.strip()
            if data.phone:
                updates["phone"] = data.phone
            if data.email:
                updates["email"] = data.email
            if not updates:
                raise HTTPException(status_code=400, detail="No valid fields to update")

            for field, value in updates.items():
                setattr(cleaner.user, field, value)
            self.db.commit()
            log_audit(self.db, admin.id, "EDIT_CLEANER", cleaner.id, "CLEANER", updates, request)
            return {
                "id": cleaner.id,
                "name": cleaner.user.name,
                "phone": cleaner.user.phone,
                "email": cleaner.user.email,
            }

        if data.action in ("makeTeamLeader", "removeTeamLeader"):
            cleaner.team_leader = data.action == "makeTeamLeader"
            self.db.commit()
            audit_action = "SET_TEAM_LEADER" if cleaner.team_leader else "REMOVE_TEAM_LEADER"
            log_audit(self.db, admin.id, audit_action, cleaner.id, "CLEANER", None, request)
            logger.info(f"👑 Cleaner {cleaner.id} team leader = {cleaner.team_leader}")
            return {"id": cleaner.id, "teamLeader": cleaner.team_leader}

        new_status, audit_action = STATUS_ACTIONS[data.action]
        previous = cleaner.status
        cleaner.status = new_status
        self.db.commit()
        log_audit(
            self.db,
            admin.id,
            audit_action,
            cleaner.id,
            "CLEANER",
            {"from": previous, "to": new_status},
            request,
        )
        logger.info(f"🔄 Cleaner {cleaner.id} status {previous} -> {new_status}")
        return {"id": cleaner.id, "status": new_status.lower()}

    def delete_cleaner(self, admin: User, cleaner_id: str, request: Request) -> None:
        cleaner = self.repo.get_cleaner(self.db, cleaner_id)
        if not cleaner:
            raise HTTPException(status_code=404, detail="Cleaner not found")
        if self.repo.active_booking_count(self.db, cleaner.id):
            raise HTTPException(status_code=400, detail="Cannot delete cleaner with active bookings")

        details = {"slug": cleaner.slug, "name": cleaner.user.name}
        self.repo.delete_cleaner_account(self.db, cleaner)
        log_audit(self.db, admin.id, "DELETE_CLEANER", cleaner_id, "CLEANER", details, request)
        logger.info(f"🗑️ Cleaner {cleaner_id} deleted by admin {admin.id}")

    def list_bookings(self, status: Optional[str] = None) -> list[dict]:
        return [serialize_booking(b) for b in self.repo.list_bookings(self.db, status)]

    def get_settings(self) -> dict:
        return settings_payload(self.repo.get_or_create_settings(self.db))

    def update_settings(self, admin: User, data: SettingsUpdate, request: Request) -> dict:
        settings = self.repo.get_or_create_settings(self.db)
        changes = data.model_dump(exclude_none=True)
        if "teamLeaderHoursRequired" in changes:
            settings.team_leader_hours_required = changes["teamLeaderHoursRequired"]
        if "teamLeaderRatingRequired" in changes:
            settings.team_leader_rating_required = changes["teamLeaderRatingRequired"]
        self.db.commit()
        self.db.refresh(settings)
        log_audit(self.db, admin.id, "UPDATE_SETTINGS", "default", "SETTINGS", changes, request)
        return settings_payload(settings)

    def list_feedback(self, status: Optional[str] = None) -> list[dict]:
        return [feedback_payload(f) for f in self.repo.list_feedback(self.db, status)]

    def create_feedback(self, data: FeedbackCreate, user: Optional[User]) -> Feedback:
        feedback = Feedback(
            user_id=user.id if user else None,
            category=data.category,
            mood=data.mood,
            message=data.message,
            page=data.page,
            status="NEW",
        )
        self.db.add(feedback)
        self.db.commit()
        self.db.refresh(feedback)
        logger.info(f"💬 Feedback {feedback.id} received ({feedback.category})")
        return feedback

    def update_feedback(self, admin: User, feedback_id: str, data: FeedbackUpdate, request: Request) -> dict:
        feedback = self.repo.get_feedback(self.db, feedback_id)
        if not feedback:
            raise HTTPException(status_code=404, detail="Feedback not found")
        feedback.status = data.status
        self.db.commit()
        log_audit(self.db, admin.id, "UPDATE_FEEDBACK", feedback.id, "FEEDBACK", {"status": data.status}, request)
        return {"id": feedback.id, "status": feedback.status.lower()}

    def moderate_review(self, admin: User, review_id: str, data: ReviewModeration, request: Request) -> dict:
        """Approve, reject (delete), feature or unfeature a review; approved ones count toward rating"""
        review = self.repo.get_review(self.db, review_id)
        if not review:
            raise HTTPException(status_code=404, detail="Review not found")
        cleaner_id = review.cleaner_id

        if data.action == "reject":
            self.db.delete(review)
            self.db.flush()
            BookingRepository.recalculate_cleaner_rating(self.db, cleaner_id)
            self.db.commit()
            log_audit(self.db, admin.id, "DELETE_REVIEW", review_id, "REVIEW", None, request)
            return {"id": review_id, "deleted": True}

        if data.action == "approve":
            review.approved = True
        elif data.action == "feature":
            review.approved = True
            review.featured = True
        else:
            review.featured = False

        self.db.flush()
        BookingRepository.recalculate_cleaner_rating(self.db, cleaner_id)
        self.db.commit()
        log_audit(self.db, admin.id, "UPDATE_REVIEW", review.id, "REVIEW", {"action": data.action}, request)
        return {"id": review.id, "approved": review.approved, "featured": review.featured}
