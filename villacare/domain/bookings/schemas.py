"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone, validate_time


class ServiceSelection(BaseModel):
    type: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    hours: float = Field(..., gt=0)


class BookingCreate(BaseModel):
    """Public booking request from a cleaner's profile page"""

    cleanerSlug: str = Field(..., min_length=1)
    propertyAddress: str = Field(..., min_length=1)
    bedrooms: Optional[int] = Field(None, ge=0)
    specialInstructions: Optional[str] = None
    service: ServiceSelection
    date: date
    time: str
    guestPhone: Optional[str] = None
    guestEmail: Optional[str] = None
    guestName: Optional[str] = None

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @field_validator("guestPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v) if v else v

    @field_validator("guestEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else v


class BookingAction(BaseModel):
    action: Literal["accept", "decline", "complete"]


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    text: Optional[str] = Field(None, max_length=2000)


class BookingPartyResponse(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


class BookingPropertyResponse(BaseModel):
    name: str
    address: str


class BookingResponse(BaseModel):
    id: str
    status: str
    service: str
    price: float
    hours: float
    date: date
    time: str
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None
    cleaner: Optional[BookingPartyResponse] = None
    owner: Optional[BookingPartyResponse] = None
    property: Optional[BookingPropertyResponse] = None
