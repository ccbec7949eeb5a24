"""Pydantic models for staff administration endpoints."""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

StaffRole = Literal["viewer", "admin", "super_admin"]


class StaffResponse(BaseModel):
    """Staff member."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(..., description="Staff user ID")
    auth0_sub: Optional[str] = Field(None, description="Linked identity-provider subject")
    email: str = Field(..., description="Normalized email address")
    role: str = Field(..., description="viewer | admin | super_admin")
    active: bool = Field(..., description="Whether the staff member may sign in")
    created_at: datetime = Field(..., description="Created at timestamp")


class StaffInviteRequest(BaseModel):
    """Invite (or reactivate) a staff member by email."""

    email: EmailStr = Field(..., description="Email address to invite")
    role: StaffRole = Field("admin", description="Role for a newly created staff row")
    active: bool = Field(True, description="Active flag to set")

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str) -> str:
        return v.strip().lower()


class StaffPatchRequest(BaseModel):
    """Partial staff update."""

    active: Optional[bool] = None
    email: Optional[EmailStr] = None
    role: Optional[StaffRole] = None

    @field_validator("email")
    @classmethod
    def normalize(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class StaffInviteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    staff: StaffResponse
    auth0_sub: Optional[str] = None
    set_password_url: Optional[str] = Field(None, alias="setPasswordUrl")
    invite_send: Dict[str, Any] = Field(default_factory=dict, alias="inviteSend")


class StaffPatchResponse(BaseModel):
    ok: bool = True
    staff: StaffResponse
