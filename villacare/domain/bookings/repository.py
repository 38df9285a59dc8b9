"""Booking repository - Database operations for bookings, owners and properties"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Cleaner, Owner, Property, Review, User
from ...shared.codes import generate_referral_code


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_active_cleaner_by_slug(db: Session, slug: str) -> Optional[Cleaner]:
        return (
            db.query(Cleaner)
            .options(joinedload(Cleaner.user))
            .filter(Cleaner.slug == slug, Cleaner.status == "ACTIVE")
            .first()
        )

    @staticmethod
    def get_cleaner_for_user(db: Session, user_id: str) -> Optional[Cleaner]:
        return db.query(Cleaner).filter(Cleaner.user_id == user_id).first()

    @staticmethod
    def get_owner_for_user(db: Session, user_id: str) -> Optional[Owner]:
        return db.query(Owner).filter(Owner.user_id == user_id).first()

    @staticmethod
    def get_or_create_owner(db: Session, user: User) -> Owner:
        """Owner profile for a user, created on first booking"""
        owner = db.query(Owner).filter(Owner.user_id == user.id).first()
        if owner:
            return owner

        code = generate_referral_code(user.name or "USER")
        while db.query(Owner.id).filter(Owner.referral_code == code).first():
            code = generate_referral_code(user.name or "USER")

        owner = Owner(user_id=user.id, referral_code=code, trusted=False)
        db.add(owner)
        db.flush()
        return owner

    @staticmethod
    def get_or_create_guest_user(
        db: Session, email: str, name: Optional[str], phone: Optional[str]
    ) -> User:
        user = db.query(User).filter(User.email == email).first()
        if user:
            return user
        user = User(email=email, name=name, phone=phone, role="OWNER")
        db.add(user)
        db.flush()
        return user

    @staticmethod
    def find_property(db: Session, owner_id: str, address: str) -> Optional[Property]:
        return (
            db.query(Property)
            .filter(Property.owner_id == owner_id, Property.address == address)
            .first()
        )

    @staticmethod
    def create_property(
        db: Session, owner_id: str, address: str, bedrooms: Optional[int], notes: Optional[str], name=None
    ) -> Property:
        prop = Property(
            owner_id=owner_id,
            name=name or f"Property at {address.split(',')[0]}",
            address=address,
            bedrooms=bedrooms or 2,
            bathrooms=1,
            notes=notes,
        )
        db.add(prop)
        db.flush()
        return prop

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(status="PENDING", **booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def get_booking_for_cleaner(db: Session, booking_id: str, cleaner_id: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.cleaner_id == cleaner_id)
            .first()
        )

    @staticmethod
    def get_booking_for_owner(db: Session, booking_id: str, owner_id: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.owner_id == owner_id)
            .first()
        )

    @staticmethod
    def list_for_cleaner(db: Session, cleaner_id: str, status: Optional[str] = None) -> list[Booking]:
        query = (
            db.query(Booking)
            .options(joinedload(Booking.owner).joinedload(Owner.user), joinedload(Booking.property))
            .filter(Booking.cleaner_id == cleaner_id)
        )
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.date.asc(), Booking.time.asc()).all()

    @staticmethod
    def list_for_owner(db: Session, owner_id: str) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.cleaner).joinedload(Cleaner.user), joinedload(Booking.property))
            .filter(Booking.owner_id == owner_id)
            .order_by(Booking.date.desc())
            .all()
        )

    @staticmethod
    def get_review_for_booking(db: Session, booking_id: str) -> Optional[Review]:
        return db.query(Review).filter(Review.booking_id == booking_id).first()

    @staticmethod
    def recalculate_cleaner_rating(db: Session, cleaner_id: str) -> None:
        """Cleaner rating and review count from approved reviews only"""
        avg_rating, count = (
            db.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.cleaner_id == cleaner_id, Review.approved.is_(True))
            .one()
        )
        cleaner = db.query(Cleaner).filter(Cleaner.id == cleaner_id).first()
        if cleaner:
            cleaner.review_count = count or 0
            if avg_rating is not None:
                cleaner.rating = round(float(avg_rating), 2)
