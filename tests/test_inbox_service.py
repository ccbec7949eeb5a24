"""Tests for the unified inbox listing."""

from datetime import datetime, timedelta, timezone

import pytest

from admin_api.config import InboxSettings
from admin_api.database.models import (
    Application,
    CoursePreregistration,
    Inquiry,
    SchoolLead,
    UniversityLead,
    WorkshopReservation,
)
from admin_api.exceptions import BadRequestError, UnsupportedSourceError
from admin_api.services.inbox_service import InboxService, clamp_page
from admin_api.services.lead_service import LeadService
from admin_api.services.sources import SourceTable

BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def service(session):
    return InboxService(session, InboxSettings(INBOX_OPEN_STATUSES="new,submitted"))


async def _seed_applications(session, count, status="new"):
    rows = [
        Application(
            full_name=f"Applicant {i:02d}",
            email=f"applicant{i:02d}@example.com",
            city="Boston",
            program_interest="Diploma",
            status=status,
            created_at=BASE_TIME + timedelta(minutes=i),
        )
        for i in range(1, count + 1)
    ]
    session.add_all(rows)
    await session.commit()
    return rows


@pytest.mark.asyncio
async def test_third_page_of_sixty_rows(service, session):
    await _seed_applications(session, 60)

    result = await service.list_inbox(scope="open", page=3, page_size=25)

    assert result["total"] == 60
    assert result["page"] == 3
    assert result["pageSize"] == 25
    # Newest first: page 3 holds rows 51..60 in that order, i.e. the ten oldest
    assert [row["full_name"] for row in result["rows"]] == [f"Applicant {i:02d}" for i in range(10, 0, -1)]


@pytest.mark.asyncio
async def test_rows_from_every_source_share_one_shape(service, session):
    session.add_all(
        [
            Application(full_name="Ana", email="ana@example.com", program_interest="MBA", status="new"),
            CoursePreregistration(full_name="Ben", email="ben@example.com", course_name="SAT Prep", status="new"),
            Inquiry(full_name="Cy", email="cy@example.com", message="Hello", status="new"),
            SchoolLead(contact_name="Dee", email="dee@school.org", school_name="North High", status="new"),
            UniversityLead(contact_name="Eve", email="eve@uni.edu", university_name="State U", status="new"),
            WorkshopReservation(full_name="Fay", email="fay@example.com", workshop_name="Essays", status="new"),
        ]
    )
    await session.commit()

    result = await service.list_inbox(scope="all", page_size=100)

    by_table = {row["source_table"]: row for row in result["rows"]}
    assert result["total"] == 6
    assert by_table["applications"]["kind"] == "application"
    assert by_table["applications"]["interest_summary"] == "MBA"
    assert by_table["course_preregistrations"]["interest_summary"] == "SAT Prep"
    assert by_table["course_preregistrations"]["assigned_to"] is None
    assert by_table["school_leads"]["full_name"] == "Dee"
    assert by_table["school_leads"]["organization_name"] == "North High"
    assert by_table["university_leads"]["kind"] == "university_lead"
    assert by_table["university_leads"]["organization_name"] == "State U"
    assert by_table["workshop_reservations"]["interest_summary"] == "Essays"


@pytest.mark.asyncio
async def test_open_scope_hides_worked_rows(service, session):
    await _seed_applications(session, 3, status="new")
    await _seed_applications(session, 2, status="contacted")

    assert (await service.list_inbox(scope="open"))["total"] == 3
    assert (await service.list_inbox(scope="all"))["total"] == 5


@pytest.mark.asyncio
async def test_search_is_case_insensitive_and_escapes_wildcards(service, session):
    session.add_all(
        [
            SchoolLead(contact_name="Pat", email="pat@a.org", school_name="100% Academy", status="new"),
            SchoolLead(contact_name="Sam", email="sam@b.org", school_name="1000 Oaks", status="new"),
            Inquiry(full_name="Jo_Ann", email="jo@example.com", status="new"),
            Inquiry(full_name="JoXAnn", email="jox@example.com", status="new"),
        ]
    )
    await session.commit()

    percent = await service.list_inbox(q="100%")
    assert [row["organization_name"] for row in percent["rows"]] == ["100% Academy"]

    underscore = await service.list_inbox(q="jo_a")
    assert [row["full_name"] for row in underscore["rows"]] == ["Jo_Ann"]

    by_email = await service.list_inbox(q="SAM@B")
    assert by_email["total"] == 1


@pytest.mark.asyncio
async def test_filters(service, session):
    await _seed_applications(session, 2)
    session.add(Inquiry(full_name="Cy", email="cy@example.com", status="new", assigned_to="u-1"))
    await session.commit()

    assert (await service.list_inbox(kind="general_inquiry"))["total"] == 1
    assert (await service.list_inbox(source_table="applications"))["total"] == 2
    assert (await service.list_inbox(assigned_to="u-1"))["total"] == 1


@pytest.mark.asyncio
async def test_university_rows_are_tagged_university_lead_in_the_inbox(service, session, registry):
    uni = UniversityLead(contact_name="Eve", email="eve@uni.edu", university_name="State U", status="new")
    session.add(uni)
    await session.commit()

    tagged = await service.list_inbox(scope="all", kind="university_lead")
    assert tagged["total"] == 1
    assert tagged["rows"][0]["source_id"] == uni.id
    assert (await service.list_inbox(scope="all", kind="university_partner"))["total"] == 0

    lead = await LeadService(session, registry).get_or_create_lead(SourceTable.UNIVERSITY_LEADS, uni.id)
    assert lead.kind == "university_partner"


@pytest.mark.asyncio
async def test_bad_scope_and_source_are_rejected(service):
    with pytest.raises(BadRequestError):
        await service.list_inbox(scope="closed")
    with pytest.raises(UnsupportedSourceError):
        await service.list_inbox(source_table="staff")


@pytest.mark.asyncio
async def test_get_inbox_row(service, session):
    rows = await _seed_applications(session, 1)
    row = await service.get_inbox_row("applications", rows[0].id)
    assert row["email"] == "applicant01@example.com"
    assert await service.get_inbox_row("applications", "missing") is None


@pytest.mark.parametrize(
    "page,page_size,expected",
    [(None, None, (1, 25)), (0, 10, (1, 10)), (-3, 500, (1, 100)), (2, 0, (2, 1))],
)
def test_clamp_page(page, page_size, expected):
    assert clamp_page(page, page_size, InboxSettings()) == expected
