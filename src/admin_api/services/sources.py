"""Source table allow-list and lead kind mapping.

The six source tables are a closed set. Anything else arriving through a
``source_table`` path or query parameter is rejected here, before any data
access happens.
"""

from enum import Enum
from typing import Any, Dict, Optional, Type

from admin_api.database.models import (
    Application,
    Base,
    CoursePreregistration,
    Inquiry,
    SchoolLead,
    UniversityLead,
    WorkshopReservation,
)
from admin_api.exceptions import UnsupportedSourceError


class SourceTable(str, Enum):
    """Tables that feed the inbox."""

    APPLICATIONS = "applications"
    COURSE_PREREGISTRATIONS = "course_preregistrations"
    INQUIRIES = "inquiries"
    SCHOOL_LEADS = "school_leads"
    UNIVERSITY_LEADS = "university_leads"
    WORKSHOP_RESERVATIONS = "workshop_reservations"


class LeadKind(str, Enum):
    """Semantic tag stored on a lead."""

    APPLICATION = "application"
    COURSE_PREREG = "course_prereg"
    GENERAL_INQUIRY = "general_inquiry"
    SCHOOL_LEAD = "school_lead"
    UNIVERSITY_PARTNER = "university_partner"
    WORKSHOP_RESERVATION = "workshop_reservation"


class LeadEventKind(str, Enum):
    """Kinds of audit entries on a lead."""

    NOTE = "note"
    STATUS_CHANGE = "status_change"
    EMAIL = "email"
    OTHER = "other"


_KIND_BY_SOURCE: Dict[SourceTable, LeadKind] = {
    SourceTable.APPLICATIONS: LeadKind.APPLICATION,
    SourceTable.COURSE_PREREGISTRATIONS: LeadKind.COURSE_PREREG,
    SourceTable.INQUIRIES: LeadKind.GENERAL_INQUIRY,
    SourceTable.SCHOOL_LEADS: LeadKind.SCHOOL_LEAD,
    # Stored kind is university_partner, not university_lead; existing rows depend on it.
    SourceTable.UNIVERSITY_LEADS: LeadKind.UNIVERSITY_PARTNER,
    SourceTable.WORKSHOP_RESERVATIONS: LeadKind.WORKSHOP_RESERVATION,
}

# The inbox row tags university leads as university_lead while leads store
# university_partner; clients filter the inbox on the row tag.
_INBOX_KIND_BY_SOURCE: Dict[SourceTable, str] = {
    **{table: kind.value for table, kind in _KIND_BY_SOURCE.items()},
    SourceTable.UNIVERSITY_LEADS: "university_lead",
}

_MODEL_BY_SOURCE: Dict[SourceTable, Type[Base]] = {
    SourceTable.APPLICATIONS: Application,
    SourceTable.COURSE_PREREGISTRATIONS: CoursePreregistration,
    SourceTable.INQUIRIES: Inquiry,
    SourceTable.SCHOOL_LEADS: SchoolLead,
    SourceTable.UNIVERSITY_LEADS: UniversityLead,
    SourceTable.WORKSHOP_RESERVATIONS: WorkshopReservation,
}


def is_allowed_source(value: Any) -> bool:
    """Check whether a raw value names one of the allowed source tables."""
    if isinstance(value, SourceTable):
        return True
    if not isinstance(value, str):
        return False
    return value in SourceTable._value2member_map_


def parse_source_table(value: Optional[str]) -> SourceTable:
    """
    Parse a raw source table name.

    Raises:
        UnsupportedSourceError: if the name is not in the allow-list
    """
    if not is_allowed_source(value):
        raise UnsupportedSourceError(value)
    return SourceTable(value)


def lead_kind_for_source(source_table: SourceTable) -> LeadKind:
    """Map a source table to the kind stored on its leads."""
    return _KIND_BY_SOURCE[SourceTable(source_table)]


def source_model_for(source_table: SourceTable) -> Type[Base]:
    """ORM class backing a source table."""
    return _MODEL_BY_SOURCE[SourceTable(source_table)]


def inbox_kind_for_source(source_table: SourceTable) -> str:
    """Kind tag shown on (and filtered by) unified inbox rows."""
    return _INBOX_KIND_BY_SOURCE[SourceTable(source_table)]
