"""Booking router - FastAPI endpoints for the booking lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_optional_user, require_cleaner, require_owner
from ...database import get_db
from ...models import User
from ...rate_limiter import rate_limit
from .schemas import BookingAction, BookingCreate, BookingResponse, ReviewCreate
from .service import BookingService, serialize_booking

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.post("/api/bookings", dependencies=[Depends(rate_limit("booking"))])
async def create_booking(
    data: BookingCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    service: BookingService = Depends(get_booking_service),
):
    """Request a booking with a cleaner (signed-in owner or guest)"""
    booking = await service.create_booking(data, current_user)
    return {"success": True, "bookingId": booking.id, "status": booking.status}


# ============================================================================
# CLEANER DASHBOARD
# ============================================================================


@router.get("/api/dashboard/cleaner/bookings", response_model=list[BookingResponse])
async def get_cleaner_bookings(
    status: Optional[str] = Query(None),
    current_user: User = Depends(require_cleaner),
    service: BookingService = Depends(get_booking_service),
):
    return [serialize_booking(b) for b in service.list_cleaner_bookings(current_user, status)]


@router.patch("/api/dashboard/cleaner/bookings/{booking_id}")
async def update_cleaner_booking(
    booking_id: str,
    data: BookingAction,
    current_user: User = Depends(require_cleaner),
    service: BookingService = Depends(get_booking_service),
):
    """accept / decline a pending request, or complete a confirmed booking"""
    booking = service.update_cleaner_booking(current_user, booking_id, data.action)
    return {"success": True, "booking": BookingResponse(**serialize_booking(booking))}


# ============================================================================
# OWNER DASHBOARD
# ============================================================================


@router.get("/api/dashboard/owner/bookings", response_model=list[BookingResponse])
async def get_owner_bookings(
    current_user: User = Depends(require_owner),
    service: BookingService = Depends(get_booking_service),
):
    return [serialize_booking(b) for b in service.list_owner_bookings(current_user)]


@router.post("/api/dashboard/owner/bookings/{booking_id}/cancel")
async def cancel_owner_booking(
    booking_id: str,
    request: Request,
    current_user: User = Depends(require_owner),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.cancel_owner_booking(current_user, booking_id, request)
    return {"success": True, "booking": BookingResponse(**serialize_booking(booking))}


@router.post("/api/dashboard/owner/bookings/{booking_id}/review")
async def review_booking(
    booking_id: str,
    data: ReviewCreate,
    current_user: User = Depends(require_owner),
    service: BookingService = Depends(get_booking_service),
):
    review = service.review_booking(current_user, booking_id, data)
    return {"success": True, "reviewId": review.id, "approved": review.approved}
