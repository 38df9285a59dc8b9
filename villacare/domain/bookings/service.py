"""Booking service - Business logic for the booking lifecycle"""

import logging
from typing import Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from ...audit import log_audit
from ...models import Booking, Cleaner, Notification, Owner, Review, User
from ...services import whatsapp_service as whatsapp
from ...services.booking_notifications import (
    format_long_date,
    format_price,
    mark_booking_responded,
    on_booking_confirmed,
    on_booking_created,
)
from .repository import BookingRepository
from .schemas import BookingCreate, ReviewCreate

logger = logging.getLogger(__name__)

ACTIVE_BOOKING_STATUSES = ("PENDING", "CONFIRMED")


def serialize_booking(booking: Booking) -> dict:
    """Booking with the other party's contact details and the property"""
    data = {
        "id": booking.id,
        "status": booking.status,
        "service": booking.service,
        "price": booking.price,
        "hours": booking.hours,
        "date": booking.date,
        "time": booking.time,
        "notes": booking.notes,
        "createdAt": booking.created_at,
        "cleaner": None,
        "owner": None,
        "property": None,
    }
    if booking.cleaner and booking.cleaner.user:
        data["cleaner"] = {"name": booking.cleaner.user.name, "phone": booking.cleaner.user.phone}
    if booking.owner and booking.owner.user:
        data["owner"] = {"name": booking.owner.user.name, "phone": booking.owner.user.phone}
    if booking.property:
        data["property"] = {"name": booking.property.name, "address": booking.property.address}
    return data


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def _cleaner_profile(self, user: User) -> Cleaner:
        cleaner = self.repo.get_cleaner_for_user(self.db, user.id)
        if not cleaner:
            raise HTTPException(status_code=404, detail="Cleaner profile not found")
        return cleaner

    def _owner_profile(self, user: User) -> Owner:
        owner = self.repo.get_owner_for_user(self.db, user.id)
        if not owner:
            raise HTTPException(status_code=404, detail="Owner profile not found")
        return owner

    async def create_booking(self, data: BookingCreate, user: Optional[User]) -> Booking:
        """Create a PENDING booking request and notify the cleaner"""
        cleaner = self.repo.get_active_cleaner_by_slug(self.db, data.cleanerSlug)
        if not cleaner:
            raise HTTPException(status_code=404, detail="Cleaner not found")

        if user is None:
            if not data.guestEmail:
                raise HTTPException(status_code=400, detail="Email required for guest booking")
            user = self.repo.get_or_create_guest_user(
                self.db, data.guestEmail, data.guestName, data.guestPhone
            )

        owner = self.repo.get_or_create_owner(self.db, user)
        prop = self.repo.find_property(self.db, owner.id, data.propertyAddress)
        if not prop:
            prop = self.repo.create_property(
                self.db, owner.id, data.propertyAddress, data.bedrooms, data.specialInstructions
            )

        booking = self.repo.create_booking(
            self.db,
            cleaner_id=cleaner.id,
            owner_id=owner.id,
            property_id=prop.id,
            service=data.service.type,
            price=data.service.price,
            hours=data.service.hours,
            date=data.date,
            time=data.time,
            notes=data.specialInstructions,
        )
        logger.info(f"📥 Booking {booking.id} requested with cleaner {cleaner.slug}")

        await on_booking_created(self.db, booking)

        owner_phone = data.guestPhone or user.phone
        if owner_phone:
            try:
                await whatsapp.send_booking_confirmation(
                    owner_phone,
                    cleaner_name=cleaner.user.name or "Your cleaner",
                    date=format_long_date(booking.date),
                    time=booking.time,
                    address=prop.address,
                    service=booking.service,
                    price=format_price(booking.price),
                )
            except Exception as e:
                logger.error(f"❌ Owner booking acknowledgement failed for {booking.id}: {e}")

        return booking

    def list_cleaner_bookings(self, user: User, status: Optional[str] = None) -> list[Booking]:
        cleaner = self._cleaner_profile(user)
        return self.repo.list_for_cleaner(self.db, cleaner.id, status)

    def update_cleaner_booking(self, user: User, booking_id: str, action: str) -> Booking:
        """Accept, decline or complete one of the cleaner's bookings"""
        cleaner = self._cleaner_profile(user)
        booking = self.repo.get_booking_for_cleaner(self.db, booking_id, cleaner.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        if action in ("accept", "decline") and booking.status != "PENDING":
            raise HTTPException(status_code=400, detail=f"Cannot {action} a {booking.status.lower()} booking")
        if action == "complete" and booking.status != "CONFIRMED":
            raise HTTPException(status_code=400, detail="Only confirmed bookings can be completed")

        if action == "accept":
            booking.status = "CONFIRMED"
            self.db.commit()
            on_booking_confirmed(self.db, booking)
        elif action == "decline":
            booking.status = "CANCELLED"
            self.db.commit()
            mark_booking_responded(self.db, booking.id)
            logger.info(f"🙅 Booking {booking.id} declined by cleaner {cleaner.id}")
        else:
            booking.status = "COMPLETED"
            cleaner.total_bookings = (cleaner.total_bookings or 0) + 1
            booking.owner.total_bookings = (booking.owner.total_bookings or 0) + 1
            self.db.commit()
            logger.info(f"🏁 Booking {booking.id} completed")

        self.db.refresh(booking)
        return booking

    def list_owner_bookings(self, user: User) -> list[Booking]:
        owner = self._owner_profile(user)
        return self.repo.list_for_owner(self.db, owner.id)

    def cancel_owner_booking(self, user: User, booking_id: str, request: Optional[Request] = None) -> Booking:
        owner = self._owner_profile(user)
        booking = self.repo.get_booking_for_owner(self.db, booking_id, owner.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.status not in ACTIVE_BOOKING_STATUSES:
            raise HTTPException(status_code=400, detail="Booking cannot be cancelled")

        booking.status = "CANCELLED"
        self.db.add(
            Notification(
                user_id=booking.cleaner.user_id,
                type="BOOKING_CANCELLED",
                title="Booking Cancelled",
                message=f"{user.name or 'The owner'} cancelled the {booking.service} "
                f"on {format_long_date(booking.date)}.",
                data={"bookingId": booking.id},
            )
        )
        self.db.commit()
        mark_booking_responded(self.db, booking.id)

        log_audit(
            self.db,
            user.id,
            "CANCEL_BOOKING",
            target=booking.id,
            target_type="BOOKING",
            details={"cleanerId": booking.cleaner_id},
            request=request,
        )
        logger.info(f"🗑️ Booking {booking.id} cancelled by owner {owner.id}")
        self.db.refresh(booking)
        return booking

    def review_booking(self, user: User, booking_id: str, data: ReviewCreate) -> Review:
        """Leave a review for a completed booking; it counts once approved"""
        owner = self._owner_profile(user)
        booking = self.repo.get_booking_for_owner(self.db, booking_id, owner.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.status != "COMPLETED":
            raise HTTPException(status_code=400, detail="Only completed bookings can be reviewed")
        if self.repo.get_review_for_booking(self.db, booking.id):
            raise HTTPException(status_code=400, detail="Booking already reviewed")

        review = Review(
            booking_id=booking.id,
            cleaner_id=booking.cleaner_id,
            owner_id=owner.id,
            rating=data.rating,
            text=data.text,
            approved=False,
        )
        self.db.add(review)
        self.db.flush()
        self.repo.recalculate_cleaner_rating(self.db, booking.cleaner_id)
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"⭐ Review {review.id} submitted for booking {booking.id}")
        return review
