"""Team schemas"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class TeamJoinRequestCreate(BaseModel):
    message: Optional[str] = Field(None, max_length=1000)


class TeamJoinRequestAction(BaseModel):
    action: Literal["approve", "reject"]
