"""Cleaner repository - Database operations for cleaner profiles"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Cleaner, User


class CleanerRepository:
    """Repository for cleaner database operations"""

    @staticmethod
    def slug_taken(db: Session, slug: str) -> bool:
        return db.query(Cleaner.id).filter(Cleaner.slug == slug).first() is not None

    @staticmethod
    def phone_taken(db: Session, phone: str) -> bool:
        return db.query(User.id).filter(User.phone == phone).first() is not None

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Optional[Cleaner]:
        return db.query(Cleaner).options(joinedload(Cleaner.user)).filter(Cleaner.slug == slug).first()

    @staticmethod
    def get_by_user_id(db: Session, user_id: str) -> Optional[Cleaner]:
        return (
            db.query(Cleaner)
            .options(joinedload(Cleaner.user))
            .filter(Cleaner.user_id == user_id)
            .first()
        )

    @staticmethod
    def create_cleaner_account(db: Session, user_data: dict, cleaner_data: dict) -> Cleaner:
        """User and cleaner profile in one transaction"""
        user = User(role="CLEANER", **user_data)
        db.add(user)
        db.flush()

        cleaner = Cleaner(user_id=user.id, **cleaner_data)
        db.add(cleaner)
        db.commit()
        db.refresh(cleaner)
        return cleaner

    @staticmethod
    def bookings_since(db: Session, cleaner_id: str, since: date) -> list[Booking]:
        return (
            db.query(Booking)
            .filter(
                Booking.cleaner_id == cleaner_id,
                Booking.status.in_(("PENDING", "CONFIRMED", "COMPLETED")),
                Booking.date >= since,
            )
            .all()
        )
