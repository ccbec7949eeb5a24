"""SQLAlchemy database models."""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Timezone-aware current time used for column defaults."""
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


# ---------------------------------------------------------------------------
# Lead unification
# ---------------------------------------------------------------------------


class Lead(Base):
    """Canonical lead, one per source row."""

    __tablename__ = "leads"
    __table_args__ = (
        UniqueConstraint(
            "source_table",
            "source_row_id",
            name="uq_leads_source_table_source_row_id",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    kind: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    source_table: Mapped[str] = mapped_column(String(64), nullable=False)
    source_row_id: Mapped[str] = mapped_column(String(36), nullable=False)
    source_page: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="new", index=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="normal")
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    events: Mapped[list["LeadEvent"]] = relationship(
        "LeadEvent", back_populates="lead", order_by="LeadEvent.created_at"
    )

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, source={self.source_table}:{self.source_row_id}, status={self.status})>"


class LeadEvent(Base):
    """Append-only audit entry on a lead."""

    __tablename__ = "lead_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    lead_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_kind: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    from_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    to_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    lead: Mapped["Lead"] = relationship("Lead", back_populates="events")

    def __repr__(self) -> str:
        return f"<LeadEvent(id={self.id}, lead_id={self.lead_id}, kind={self.event_kind})>"


class LeadStatus(Base):
    """Registry of valid inbox/lead status codes."""

    __tablename__ = "lead_statuses"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_terminal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


# Seeded by the initial migration; also used by tests and local bootstrap.
DEFAULT_LEAD_STATUSES = [
    {"code": "new", "label": "New", "sort_order": 10, "is_terminal": False},
    {"code": "in_review", "label": "In review", "sort_order": 20, "is_terminal": False},
    {"code": "contacted", "label": "Contacted", "sort_order": 30, "is_terminal": False},
    {"code": "qualified", "label": "Qualified", "sort_order": 40, "is_terminal": False},
    {"code": "converted", "label": "Converted", "sort_order": 50, "is_terminal": False},
    {"code": "archived", "label": "Archived", "sort_order": 90, "is_terminal": True},
]


class Staff(Base):
    """Internal user allowed into the admin portals."""

    __tablename__ = "staff"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    auth0_sub: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="admin")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Staff(user_id={self.user_id}, email={self.email}, role={self.role}, active={self.active})>"


# ---------------------------------------------------------------------------
# Source tables (owned by the public website funnels)
# ---------------------------------------------------------------------------


class Application(Base):
    """Program application."""

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    program_interest: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default="new")
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    source_page: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class CoursePreregistration(Base):
    """Pre-registration for an upcoming course."""

    __tablename__ = "course_preregistrations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    course_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default="new")
    source_page: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Inquiry(Base):
    """General contact-form inquiry."""

    __tablename__ = "inquiries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default="new")
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    source_page: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class SchoolLead(Base):
    """Partnership interest from a school."""

    __tablename__ = "school_leads"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    contact_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    school_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default="new")
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    source_page: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class UniversityLead(Base):
    """Partnership interest from a university."""

    __tablename__ = "university_leads"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    contact_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    university_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default="new")
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    source_page: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class WorkshopReservation(Base):
    """Seat reservation for a workshop."""

    __tablename__ = "workshop_reservations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    workshop_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default="new")
    source_page: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


# ---------------------------------------------------------------------------
# Diploma portal
# ---------------------------------------------------------------------------


class DiplomaStudent(Base):
    """Student enrolled in the diploma program."""

    __tablename__ = "diploma_students"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    cohort: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    auth0_sub: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    drive_binder_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    drive_folder_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    items: Mapped[list["DiplomaStudentItem"]] = relationship(
        "DiplomaStudentItem", back_populates="student", cascade="all, delete-orphan"
    )


class DiplomaStudentItem(Base):
    """Task, note or resource attached to a student."""

    __tablename__ = "diploma_student_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("diploma_students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    drive_link_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    visible_to_student: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    student: Mapped["DiplomaStudent"] = relationship("DiplomaStudent", back_populates="items")


class DiplomaAnnouncement(Base):
    """Time-boxed announcement shown in the student portal."""

    __tablename__ = "diploma_announcements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    drive_link_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    audience: Mapped[str] = mapped_column(String(64), nullable=False, default="all_diploma")
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
