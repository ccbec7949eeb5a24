"""Tests for the diploma portal."""

from datetime import date, datetime, timedelta, timezone

import pytest

from admin_api.database.models import DiplomaAnnouncement, DiplomaStudent, DiplomaStudentItem
from admin_api.exceptions import BadRequestError, NotFoundError
from admin_api.services.diploma_service import DiplomaService

STUDENT_SUB = "auth0|student"


@pytest.fixture
def service(session, resend):
    return DiplomaService(session, email_client=resend)


@pytest.fixture
async def students(session):
    """Three students; Bea has two overdue tasks, Cal has one, Ava has none."""
    past_due = date.today() - timedelta(days=2)
    upcoming = date.today() + timedelta(days=2)
    ava = DiplomaStudent(full_name="Ava Diaz", email="ava@example.com", cohort="2026", auth0_sub=STUDENT_SUB)
    bea = DiplomaStudent(
        full_name="Bea Ortiz", email="bea@example.com", cohort="2026", drive_binder_url="https://drive/bea"
    )
    cal = DiplomaStudent(full_name="Cal Reyes", email="cal@example.com", cohort="2027")
    session.add_all([ava, bea, cal])
    await session.flush()
    session.add_all(
        [
            DiplomaStudentItem(student_id=ava.id, item_type="task", title="Essay", due_date=upcoming),
            DiplomaStudentItem(
                student_id=ava.id, item_type="note", title="Welcome", visible_to_student=True
            ),
            DiplomaStudentItem(student_id=bea.id, item_type="task", title="Transcript", due_date=past_due),
            DiplomaStudentItem(student_id=bea.id, item_type="task", title="Photo", due_date=past_due),
            DiplomaStudentItem(student_id=bea.id, item_type="resource", title="Guide", due_date=past_due),
            DiplomaStudentItem(student_id=cal.id, item_type="task", title="Form", due_date=past_due),
        ]
    )
    await session.commit()
    return {"ava": ava, "bea": bea, "cal": cal}


@pytest.mark.asyncio
async def test_list_students_pages_in_database(service, students):
    result = await service.list_students(page=1, page_size=2, sort="full_name")
    assert result["total"] == 3
    assert [row["full_name"] for row in result["rows"]] == ["Ava Diaz", "Bea Ortiz"]
    assert result["rows"][1]["overdue_count"] == 2
    assert result["rows"][1]["item_count"] == 3


@pytest.mark.asyncio
async def test_sort_by_overdue_count(service, students):
    result = await service.list_students(sort="overdue_count", direction="desc")
    assert [(row["full_name"], row["overdue_count"]) for row in result["rows"]] == [
        ("Bea Ortiz", 2),
        ("Cal Reyes", 1),
        ("Ava Diaz", 0),
    ]


@pytest.mark.asyncio
async def test_has_overdue_filter(service, students):
    result = await service.list_students(has_overdue=True, page_size=1, sort="full_name")
    assert result["total"] == 2
    assert [row["full_name"] for row in result["rows"]] == ["Bea Ortiz"]


@pytest.mark.asyncio
async def test_flag_filters(service, students):
    assert (await service.list_students(has_binder=True))["total"] == 1
    assert (await service.list_students(missing_binder=True))["total"] == 2
    assert (await service.list_students(missing_auth0_sub=True))["total"] == 2
    assert (await service.list_students(cohort="2027"))["total"] == 1
    assert (await service.list_students(q="ORTIZ"))["total"] == 1


@pytest.mark.asyncio
async def test_unknown_sort_falls_back_to_name(service, students):
    result = await service.list_students(sort="password")
    assert result["rows"][0]["full_name"] == "Ava Diaz"


@pytest.mark.asyncio
async def test_create_student_with_welcome(service, resend):
    result = await service.create_student(
        {"full_name": "Dana Kim", "email": "dana@example.com", "cohort": "2026"}, send_welcome=True
    )
    assert result["student"].id
    assert result["welcomeEmail"] == {"requested": True, "ok": True, "skipped": False}
    assert resend.sent[0]["to"] == "dana@example.com"
    assert resend.sent[0]["text"].startswith("Hi Dana,")


@pytest.mark.asyncio
async def test_create_student_welcome_failure_keeps_student(session, failing_resend):
    service = DiplomaService(session, email_client=failing_resend)
    result = await service.create_student({"full_name": "Eli", "email": "eli@example.com"}, send_welcome=True)
    assert result["welcomeEmail"]["ok"] is False
    assert "rejected" in result["welcomeEmail"]["error"]
    assert (await service.get_student(result["student"].id)).email == "eli@example.com"


@pytest.mark.asyncio
async def test_create_student_without_welcome(service, resend):
    result = await service.create_student({"full_name": "Fin", "email": "fin@example.com"})
    assert result["welcomeEmail"] == {"requested": False, "ok": False, "skipped": True}
    assert resend.sent == []


@pytest.mark.asyncio
async def test_update_student(service, students):
    updated = await service.update_student(students["cal"].id, {"cohort": None, "email": " CAL@Example.com"})
    assert updated.cohort is None
    assert updated.email == "cal@example.com"
    with pytest.raises(BadRequestError):
        await service.update_student(students["cal"].id, {"full_name": "  "})
    with pytest.raises(NotFoundError):
        await service.update_student("missing", {"cohort": "2028"})


@pytest.mark.asyncio
async def test_student_sees_only_visible_items(service, students):
    items = await service.list_my_items(STUDENT_SUB)
    assert [item.title for item in items] == ["Welcome"]
    with pytest.raises(NotFoundError):
        await service.list_my_items("auth0|not-enrolled")


@pytest.mark.asyncio
async def test_admin_item_order_is_by_due_date_undated_last(service, students):
    items = await service.list_items(students["ava"].id)
    assert [item.title for item in items] == ["Essay", "Welcome"]


@pytest.mark.asyncio
async def test_item_crud(service, students):
    item = await service.create_item(
        students["cal"].id, {"item_type": "resource", "title": "Map", "visible_to_student": True}
    )
    assert item.created_by_admin is True

    updated = await service.update_item(item.id, {"title": " Campus map ", "due_date": None})
    assert updated.title == "Campus map"

    with pytest.raises(BadRequestError):
        await service.update_item(item.id, {"item_type": "quiz"})

    await service.delete_item(item.id)
    with pytest.raises(NotFoundError):
        await service.delete_item(item.id)


@pytest.mark.asyncio
async def test_announcements_for_student(service, session, students):
    now = datetime.now(timezone.utc)
    session.add_all(
        [
            DiplomaAnnouncement(title="Everyone", body="", audience="all_diploma", starts_at=now - timedelta(days=1)),
            DiplomaAnnouncement(title="Cohort", body="", audience="cohort_2026", starts_at=now - timedelta(days=1)),
            DiplomaAnnouncement(title="Other cohort", body="", audience="cohort_2027", starts_at=now - timedelta(days=1)),
            DiplomaAnnouncement(title="Future", body="", audience="all_diploma", starts_at=now + timedelta(days=3)),
            DiplomaAnnouncement(
                title="Expired",
                body="",
                audience="all_diploma",
                starts_at=now - timedelta(days=5),
                ends_at=now - timedelta(days=1),
            ),
        ]
    )
    await session.commit()

    titles = {a.title for a in await service.list_announcements_for(STUDENT_SUB)}
    assert titles == {"Everyone", "Cohort"}


@pytest.mark.asyncio
async def test_student_endpoints(client, students, token_claims):
    token_claims["claims"] = {"sub": STUDENT_SUB}

    me = await client.get("/api/diploma/me")
    assert me.status_code == 200
    assert me.json()["full_name"] == "Ava Diaz"

    items = await client.get("/api/diploma/me/items")
    assert [item["title"] for item in items.json()] == ["Welcome"]

    # Students are not staff
    assert (await client.get("/api/diploma/admin/students")).status_code == 403


@pytest.mark.asyncio
async def test_admin_endpoints(client, admin_staff, students, resend):
    listed = await client.get(
        "/api/diploma/admin/students", params={"has_overdue": "true", "sort": "overdue_count", "dir": "desc"}
    )
    assert listed.status_code == 200
    body = listed.json()
    assert body["total"] == 2
    assert body["pageSize"] == 25
    assert body["rows"][0]["overdue_count"] == 2

    created = await client.post(
        "/api/diploma/admin/students",
        json={"full_name": "Gus", "email": "gus@example.com", "send_welcome": True},
    )
    assert created.status_code == 201
    assert created.json()["welcomeEmail"]["ok"] is True
    student_id = created.json()["student"]["id"]

    item = await client.post(
        f"/api/diploma/admin/students/{student_id}/items",
        json={"item_type": "task", "title": "Passport copy", "due_date": "2026-12-01"},
    )
    assert item.status_code == 201

    deleted = await client.delete(f"/api/diploma/admin/items/{item.json()['id']}")
    assert deleted.status_code == 204

    announcement = await client.post("/api/diploma/admin/announcements", json={"title": "Orientation"})
    assert announcement.status_code == 201
    assert announcement.json()["audience"] == "all_diploma"
