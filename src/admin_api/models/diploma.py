"""Pydantic models for the diploma portal."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from admin_api.models.common import blank_to_none

ItemType = Literal["task", "note", "resource"]


class StudentResponse(BaseModel):
    """Diploma student."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    email: str
    cohort: Optional[str] = None
    auth0_sub: Optional[str] = None
    drive_binder_url: Optional[str] = None
    drive_folder_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class StudentListRow(StudentResponse):
    """Student row in the admin listing, with derived metrics."""

    item_count: Optional[int] = Field(None, description="Number of items (derived-metric listings only)")
    overdue_count: Optional[int] = Field(None, description="Overdue tasks (derived-metric listings only)")


class StudentListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rows: List[StudentListRow]
    total: int
    page: int
    page_size: int = Field(..., alias="pageSize")


class StudentCreateRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    cohort: Optional[str] = None
    auth0_sub: Optional[str] = None
    drive_binder_url: Optional[str] = None
    drive_folder_url: Optional[str] = None
    send_welcome: bool = Field(False, description="Send the portal welcome email")

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("full_name is required")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("cohort", "auth0_sub", "drive_binder_url", "drive_folder_url")
    @classmethod
    def blanks(cls, v: Optional[str]) -> Optional[str]:
        return blank_to_none(v)


class WelcomeEmailOutcome(BaseModel):
    requested: bool
    ok: bool
    skipped: bool
    error: Optional[str] = None


class StudentCreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student: StudentResponse
    welcome_email: WelcomeEmailOutcome = Field(..., alias="welcomeEmail")


class StudentPatchRequest(BaseModel):
    """Partial student update; only provided fields are written."""

    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    cohort: Optional[str] = None
    drive_binder_url: Optional[str] = None
    drive_folder_url: Optional[str] = None


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    item_type: str
    title: str
    body: Optional[str] = None
    drive_link_url: Optional[str] = None
    due_date: Optional[date] = None
    visible_to_student: bool
    created_by_admin: bool
    created_at: datetime


class ItemCreateRequest(BaseModel):
    item_type: ItemType
    title: str = Field(..., max_length=500)
    body: Optional[str] = None
    drive_link_url: Optional[str] = None
    due_date: Optional[date] = None
    visible_to_student: bool = False

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("body", "drive_link_url")
    @classmethod
    def blanks(cls, v: Optional[str]) -> Optional[str]:
        return blank_to_none(v)


class ItemPatchRequest(BaseModel):
    """Partial item update; only provided fields are written."""

    item_type: Optional[ItemType] = None
    title: Optional[str] = Field(None, max_length=500)
    body: Optional[str] = None
    drive_link_url: Optional[str] = None
    due_date: Optional[date] = None
    visible_to_student: Optional[bool] = None

    @field_validator("drive_link_url", mode="before")
    @classmethod
    def blank_link(cls, v):
        return v or None

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_date(cls, v):
        return v or None


class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    body: str
    drive_link_url: Optional[str] = None
    audience: str
    starts_at: datetime
    ends_at: Optional[datetime] = None
    created_at: datetime


class AnnouncementCreateRequest(BaseModel):
    title: str = Field(..., max_length=500)
    body: Optional[str] = None
    drive_link_url: Optional[str] = None
    audience: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("drive_link_url", "audience")
    @classmethod
    def blanks(cls, v: Optional[str]) -> Optional[str]:
        return blank_to_none(v)
