"""Pydantic models for inbox endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from admin_api.models.common import blank_to_none, uuid_or_none


class InboxRow(BaseModel):
    """One row of the unified inbox."""

    source_table: str = Field(..., description="Originating table")
    source_id: str = Field(..., description="Row id in the originating table")
    kind: str = Field(..., description="Inbox kind tag (university_lead for university leads)")
    full_name: Optional[str] = None
    email: Optional[str] = None
    organization_name: Optional[str] = None
    city: Optional[str] = None
    interest_summary: Optional[str] = None
    status: Optional[str] = Field(None, description="Source row status")
    assigned_to: Optional[str] = None
    source_page: Optional[str] = None
    created_at: Optional[datetime] = None


class InboxListResponse(BaseModel):
    """Paginated inbox listing."""

    model_config = ConfigDict(populate_by_name=True)

    rows: List[InboxRow] = Field(..., description="Rows on this page")
    total: int = Field(..., description="Total rows matching the filters")
    page: int = Field(..., description="1-indexed page number")
    page_size: int = Field(..., alias="pageSize", description="Rows per page")


class LeadResponse(BaseModel):
    """Canonical lead."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    source_table: str
    source_row_id: str
    source_page: Optional[str] = None
    status: str
    priority: str
    assigned_to: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class LeadEventResponse(BaseModel):
    """Audit trail entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    lead_id: str
    event_kind: str
    title: Optional[str] = None
    body: Optional[str] = None
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime


class InboxDetailResponse(BaseModel):
    """Inbox row, raw source row, lead and its events."""

    inbox: Optional[InboxRow] = None
    source: Dict[str, Any]
    lead: LeadResponse
    events: List[LeadEventResponse]


class InboxPatchRequest(BaseModel):
    """Status/assignment update; omitted fields are left untouched."""

    source_status: Optional[str] = Field(None, description="New source row status")
    assigned_to: Optional[str] = Field(None, description="Staff user_id, or empty/null to unassign")
    lead_status: Optional[str] = Field(None, description="New lead status")

    @field_validator("source_status", "lead_status")
    @classmethod
    def normalize_status(cls, v: Optional[str]) -> Optional[str]:
        return blank_to_none(v)

    @field_validator("assigned_to")
    @classmethod
    def validate_assigned_to(cls, v: Optional[str]) -> Optional[str]:
        return uuid_or_none(v)


class InboxPatchResponse(BaseModel):
    ok: bool = True
    lead: LeadResponse
    inbox: Optional[InboxRow] = None


class NoteRequest(BaseModel):
    """Free-text note on a lead."""

    title: Optional[str] = Field(None, max_length=500, description="Defaults to 'Note'")
    body: str = Field(..., description="Note text")

    @field_validator("body")
    @classmethod
    def body_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Note body is required")
        return v


class ReplyRequest(BaseModel):
    """Email reply to the contact behind a source row."""

    to: EmailStr = Field(..., description="Recipient")
    subject: str = Field(..., min_length=1, max_length=500)
    text: Optional[str] = None
    html: Optional[str] = None
    set_source_status: Optional[str] = None
    set_lead_status: Optional[str] = None

    @field_validator("subject")
    @classmethod
    def subject_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("subject is required")
        return v

    @field_validator("set_source_status", "set_lead_status", "text", "html")
    @classmethod
    def empty_as_missing(cls, v: Optional[str]) -> Optional[str]:
        return v if v else None

    @model_validator(mode="after")
    def text_or_html(self) -> "ReplyRequest":
        if not self.text and not self.html:
            raise ValueError("Provide text or html")
        return self


class OkResponse(BaseModel):
    ok: bool = True


class ReplyResponse(BaseModel):
    ok: bool = True
    resend: Dict[str, Any] = Field(default_factory=dict, description="Provider response")
