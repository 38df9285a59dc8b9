"""Pending onboarding schemas - owner details collected before an account exists"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone, validate_time


class PendingOnboardingCreate(BaseModel):
    cleanerSlug: str = Field(..., min_length=1)
    visitorName: str = Field(..., min_length=1, max_length=255)
    visitorPhone: str
    visitorEmail: Optional[str] = None
    bedrooms: int = Field(..., ge=1)
    bathrooms: int = Field(..., ge=1)
    outdoorAreas: list[str] = Field(default_factory=list)
    accessNotes: Optional[str] = None
    address: Optional[str] = None
    ownerType: Optional[Literal["REMOTE", "RESIDENT"]] = None
    serviceType: Literal["regular", "deep", "arrival"]
    preferredDate: date
    preferredTime: str

    @field_validator("visitorPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("visitorEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else v

    @field_validator("preferredTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class PendingOnboardingConfirm(BaseModel):
    email: str
    propertyName: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)
