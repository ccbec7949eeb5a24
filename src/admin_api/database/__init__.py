"""Database connection and session management."""

from admin_api.database.connection import (
    check_connection,
    close_engine,
    create_engine,
    get_engine,
)
from admin_api.database.models import (
    Application,
    Base,
    CoursePreregistration,
    DiplomaAnnouncement,
    DiplomaStudent,
    DiplomaStudentItem,
    Inquiry,
    Lead,
    LeadEvent,
    LeadStatus,
    SchoolLead,
    Staff,
    UniversityLead,
    WorkshopReservation,
)
from admin_api.database.session import (
    close_db,
    get_session,
    get_session_context,
    get_session_factory,
    init_db,
)

__all__ = [
    # Models
    "Base",
    "Lead",
    "LeadEvent",
    "LeadStatus",
    "Staff",
    "Application",
    "CoursePreregistration",
    "Inquiry",
    "SchoolLead",
    "UniversityLead",
    "WorkshopReservation",
    "DiplomaStudent",
    "DiplomaStudentItem",
    "DiplomaAnnouncement",
    # Connection
    "get_engine",
    "create_engine",
    "close_engine",
    "check_connection",
    # Session
    "get_session",
    "get_session_context",
    "get_session_factory",
    "init_db",
    "close_db",
]
