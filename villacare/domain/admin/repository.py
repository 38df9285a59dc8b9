"""Admin repository - platform-wide queries"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import (
    Booking,
    Cleaner,
    Feedback,
    Notification,
    Owner,
    PendingOnboarding,
    PlatformSettings,
    Review,
    TeamJoinRequest,
)


class AdminRepository:
    @staticmethod
    def cleaner_counts(db: Session) -> dict:
        rows = db.query(Cleaner.status, func.count(Cleaner.id)).group_by(Cleaner.status).all()
        by_status = {status: count for status, count in rows}
        return {
            "total": sum(by_status.values()),
            "active": by_status.get("ACTIVE", 0),
            "pending": by_status.get("PENDING", 0),
            "suspended": by_status.get("SUSPENDED", 0),
        }

    @staticmethod
    def booking_count(db: Session, since: Optional[datetime] = None) -> int:
        query = db.query(func.count(Booking.id))
        if since:
            query = query.filter(Booking.created_at >= since)
        return query.scalar() or 0

    @staticmethod
    def completed_revenue(db: Session, since: Optional[datetime] = None) -> float:
        query = db.query(func.coalesce(func.sum(Booking.price), 0)).filter(Booking.status == "COMPLETED")
        if since:
            query = query.filter(Booking.created_at >= since)
        return float(query.scalar() or 0)

    @staticmethod
    def approved_review_stats(db: Session) -> tuple[int, float]:
        count, average = (
            db.query(func.count(Review.id), func.avg(Review.rating))
            .filter(Review.approved.is_(True))
            .one()
        )
        return count or 0, float(average or 0)

    @staticmethod
    def list_cleaners(db: Session) -> list[Cleaner]:
        return db.query(Cleaner).options(joinedload(Cleaner.user)).order_by(Cleaner.created_at.desc()).all()

    @staticmethod
    def get_cleaner(db: Session, cleaner_id: str) -> Optional[Cleaner]:
        return db.query(Cleaner).options(joinedload(Cleaner.user)).filter(Cleaner.id == cleaner_id).first()

    @staticmethod
    def active_booking_count(db: Session, cleaner_id: str) -> int:
        return (
            db.query(func.count(Booking.id))
            .filter(Booking.cleaner_id == cleaner_id, Booking.status.in_(("PENDING", "CONFIRMED")))
            .scalar()
        )

    @staticmethod
    def delete_cleaner_account(db: Session, cleaner: Cleaner) -> None:
        """Remove a cleaner, their user and rows that only exist for them"""
        user = cleaner.user
        team = cleaner.led_team
        if team:
            for member in list(team.members):
                member.team_id = None
            db.flush()
            db.delete(team)
            db.flush()
        db.query(PendingOnboarding).filter(PendingOnboarding.cleaner_id == cleaner.id).delete(
            synchronize_session=False
        )
        db.query(TeamJoinRequest).filter(TeamJoinRequest.cleaner_id == cleaner.id).delete(synchronize_session=False)
        db.query(Notification).filter(Notification.user_id == user.id).delete(synchronize_session=False)
        db.delete(cleaner)
        db.delete(user)
        db.commit()

    @staticmethod
    def list_bookings(db: Session, status: Optional[str] = None, limit: int = 100) -> list[Booking]:
        query = db.query(Booking).options(
            joinedload(Booking.cleaner).joinedload(Cleaner.user),
            joinedload(Booking.owner).joinedload(Owner.user),
            joinedload(Booking.property),
        )
        if status:
            query = query.filter(Booking.status == status.upper())
        return query.order_by(Booking.created_at.desc()).limit(limit).all()

    @staticmethod
    def get_or_create_settings(db: Session) -> PlatformSettings:
        settings = db.query(PlatformSettings).filter(PlatformSettings.id == "default").first()
        if not settings:
            settings = PlatformSettings(id="default", team_leader_hours_required=50, team_leader_rating_required=5.0)
            db.add(settings)
            db.commit()
            db.refresh(settings)
        return settings

    @staticmethod
    def list_feedback(db: Session, status: Optional[str] = None) -> list[Feedback]:
        query = db.query(Feedback)
        if status:
            query = query.filter(Feedback.status == status.upper())
        return query.order_by(Feedback.created_at.desc()).all()

    @staticmethod
    def get_feedback(db: Session, feedback_id: str) -> Optional[Feedback]:
        return db.query(Feedback).filter(Feedback.id == feedback_id).first()

    @staticmethod
    def get_review(db: Session, review_id: str) -> Optional[Review]:
        return db.query(Review).filter(Review.id == review_id).first()
