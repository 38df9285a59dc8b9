"""Admin domain schemas"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone

CleanerAction = Literal["approve", "suspend", "activate", "makeTeamLeader", "removeTeamLeader", "edit"]


class CleanerUpdate(BaseModel):
    action: CleanerAction
    # edit only
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v) if v else v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else v


class SettingsUpdate(BaseModel):
    teamLeaderHoursRequired: Optional[int] = Field(None, ge=1, le=1000)
    teamLeaderRatingRequired: Optional[float] = Field(None, ge=1, le=5)


class FeedbackCreate(BaseModel):
    category: str = Field("general", max_length=50)
    mood: Optional[str] = Field(None, max_length=20)
    message: str = Field(..., min_length=1, max_length=5000)
    page: Optional[str] = Field(None, max_length=500)


class FeedbackUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        v = v.upper()
        if v not in ("NEW", "REVIEWED", "RESOLVED"):
            raise ValueError('Invalid status. Use "new", "reviewed" or "resolved"')
        return v


class ReviewModeration(BaseModel):
    action: Literal["approve", "reject", "feature", "unfeature"]


class ImpersonateRequest(BaseModel):
    cleanerId: str = Field(..., min_length=1)
