"""
Pending onboarding service

A visitor describes their villa and the cleaning they want; we keep it as a
PendingOnboarding and send them a magic link. Following the link (within
24 hours) creates their owner account, property and a PENDING booking.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from ... import config
from ...models import Booking, Cleaner, PendingOnboarding, User
from ...services import whatsapp_service as whatsapp
from ...services.booking_notifications import on_booking_created
from ...shared.codes import generate_onboarding_token
from ...shared.pricing import SERVICES, service_quote
from ..bookings.repository import BookingRepository
from .schemas import PendingOnboardingConfirm, PendingOnboardingCreate

logger = logging.getLogger(__name__)

ONBOARDING_TTL = timedelta(hours=24)
SERVICE_NAMES = {service["type"]: service["name"] for service in SERVICES}


def magic_link(token: str) -> str:
    return f"{config.APP_URL.rstrip('/')}/onboard/{token}"


class OnboardingService:
    def __init__(self, db: Session):
        self.db = db
        self.bookings = BookingRepository()

    def _get(self, token: str) -> PendingOnboarding:
        onboarding = (
            self.db.query(PendingOnboarding)
            .options(joinedload(PendingOnboarding.cleaner).joinedload(Cleaner.user))
            .filter(PendingOnboarding.token == token)
            .first()
        )
        if not onboarding:
            raise HTTPException(status_code=404, detail="Onboarding not found")
        return onboarding

    def _expire(self, onboarding: PendingOnboarding) -> None:
        onboarding.status = "EXPIRED"
        self.db.commit()
        logger.info(f"⌛ Pending onboarding {onboarding.id} expired")

    async def create(self, data: PendingOnboardingCreate, now: Optional[datetime] = None) -> PendingOnboarding:
        cleaner = self.bookings.get_active_cleaner_by_slug(self.db, data.cleanerSlug)
        if not cleaner:
            raise HTTPException(status_code=404, detail="Cleaner not found")

        price, hours = service_quote(cleaner.hourly_rate, data.serviceType)
        now = now or datetime.utcnow()
        onboarding = PendingOnboarding(
            token=generate_onboarding_token(),
            cleaner_id=cleaner.id,
            visitor_name=data.visitorName,
            visitor_phone=data.visitorPhone,
            visitor_email=data.visitorEmail,
            bedrooms=data.bedrooms,
            bathrooms=data.bathrooms,
            outdoor_areas=data.outdoorAreas,
            access_notes=data.accessNotes,
            address=data.address,
            owner_type=data.ownerType,
            service_type=data.serviceType,
            service_price=price,
            service_hours=hours,
            preferred_date=data.preferredDate,
            preferred_time=data.preferredTime,
            status="PENDING",
            expires_at=now + ONBOARDING_TTL,
        )
        self.db.add(onboarding)
        self.db.commit()
        self.db.refresh(onboarding)
        logger.info(f"📝 Pending onboarding {onboarding.id} created for cleaner {cleaner.slug}")

        try:
            await whatsapp.send_onboarding_link(
                data.visitorPhone,
                data.visitorName,
                cleaner.user.name or "your cleaner",
                magic_link(onboarding.token),
            )
        except Exception as e:
            logger.error(f"❌ Magic link delivery failed for onboarding {onboarding.id}: {e}")

        return onboarding

    def get_details(self, token: str, now: Optional[datetime] = None) -> dict:
        onboarding = self._get(token)
        now = now or datetime.utcnow()
        if onboarding.status == "PENDING" and now > onboarding.expires_at:
            self._expire(onboarding)
            raise HTTPException(status_code=404, detail="Onboarding link expired")

        return {
            "id": onboarding.id,
            "cleanerName": onboarding.cleaner.user.name,
            "cleanerPhoto": onboarding.cleaner.user.image,
            "visitorName": onboarding.visitor_name,
            "visitorPhone": onboarding.visitor_phone,
            "bedrooms": onboarding.bedrooms,
            "bathrooms": onboarding.bathrooms,
            "outdoorAreas": onboarding.outdoor_areas or [],
            "accessNotes": onboarding.access_notes,
            "serviceType": onboarding.service_type,
            "serviceName": SERVICE_NAMES.get(onboarding.service_type, onboarding.service_type),
            "servicePrice": onboarding.service_price,
            "serviceHours": onboarding.service_hours,
            "preferredDate": onboarding.preferred_date.isoformat(),
            "preferredTime": onboarding.preferred_time,
            "status": onboarding.status,
            "expiresAt": onboarding.expires_at.isoformat(),
        }

    def _owner_user(self, onboarding: PendingOnboarding, email: str, now: datetime) -> User:
        # Confirming signs the visitor in, so an existing account must sign in itself
        if self.db.query(User.id).filter(User.email == email).first():
            raise HTTPException(
                status_code=400, detail="An account with this email already exists. Please sign in first"
            )

        phone_owner = self.db.query(User.id).filter(User.phone == onboarding.visitor_phone).first()
        user = User(
            name=onboarding.visitor_name,
            email=email,
            phone=None if phone_owner else onboarding.visitor_phone,
            role="OWNER",
            email_verified_at=now,
            phone_verified_at=None if phone_owner else now,
        )
        self.db.add(user)
        self.db.flush()
        return user

    async def confirm(
        self, token: str, data: PendingOnboardingConfirm, now: Optional[datetime] = None
    ) -> tuple[dict, User]:
        """Create the owner account, property and PENDING booking for a magic link"""
        onboarding = self._get(token)
        now = now or datetime.utcnow()

        if onboarding.status != "PENDING":
            raise HTTPException(status_code=400, detail="Onboarding already completed or expired")
        if now > onboarding.expires_at:
            self._expire(onboarding)
            raise HTTPException(status_code=400, detail="Onboarding link expired")

        user = self._owner_user(onboarding, data.email, now)
        owner = self.bookings.get_or_create_owner(self.db, user)
        prop = self.bookings.create_property(
            self.db,
            owner.id,
            onboarding.address or "Address to be provided",
            onboarding.bedrooms,
            onboarding.access_notes,
            name=data.propertyName,
        )
        prop.bathrooms = onboarding.bathrooms

        outdoor = ", ".join(onboarding.outdoor_areas or []) or "None"
        booking = Booking(
            cleaner_id=onboarding.cleaner_id,
            owner_id=owner.id,
            property_id=prop.id,
            status="PENDING",
            service=onboarding.service_type,
            price=onboarding.service_price,
            hours=onboarding.service_hours,
            date=onboarding.preferred_date,
            time=onboarding.preferred_time,
            notes=(
                f"Property: {onboarding.bedrooms} bed, {onboarding.bathrooms} bath. "
                f"Outdoor: {outdoor}. {onboarding.access_notes or ''}"
            ).strip(),
            created_by_ai=True,
        )
        self.db.add(booking)
        self.db.flush()

        onboarding.status = "COMPLETED"
        onboarding.completed_at = now
        onboarding.user_id = user.id
        onboarding.owner_id = owner.id
        onboarding.property_id = prop.id
        onboarding.booking_id = booking.id
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"✅ Onboarding {onboarding.id} confirmed - booking {booking.id} created")

        try:
            await on_booking_created(self.db, booking)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create booking notification for {booking.id}: {e}")

        result = {
            "success": True,
            "isNewUser": True,
            "userId": user.id,
            "ownerId": owner.id,
            "propertyId": prop.id,
            "bookingId": booking.id,
            "cleanerName": onboarding.cleaner.user.name,
        }
        return result, user
