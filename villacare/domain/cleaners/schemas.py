"""Cleaner domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone


class CleanerOnboarding(BaseModel):
    """Sign-up form for a new cleaner"""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str
    email: Optional[str] = None
    photoUrl: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=2000)
    reviewsLink: Optional[str] = None
    serviceAreas: list[str] = Field(..., min_length=1)
    hourlyRate: float = Field(..., gt=0)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else v


class ServiceResponse(BaseModel):
    type: str
    name: str
    description: str
    hours: float
    price: float


class CleanerPublicResponse(BaseModel):
    id: str
    slug: str
    name: Optional[str] = None
    photo: Optional[str] = None
    rating: Optional[float] = None
    reviewCount: int
    areas: list[str]
    hourlyRate: float
    bio: Optional[str] = None
    reviewsLink: Optional[str] = None
    teamLeader: bool
    services: list[ServiceResponse]


class CleanerProfileResponse(BaseModel):
    id: str
    slug: str
    status: str
    bio: Optional[str] = None
    serviceAreas: list[str]
    hourlyRate: float
    rating: Optional[float] = None
    reviewCount: int
    totalBookings: int
    teamLeader: bool
    name: Optional[str] = None
    photo: Optional[str] = None
    phone: Optional[str] = None


class CleanerStats(BaseModel):
    thisWeekEarnings: float
    thisWeekBookings: int
    completedThisMonth: int


class CleanerDashboardResponse(BaseModel):
    cleaner: CleanerProfileResponse
    stats: CleanerStats
