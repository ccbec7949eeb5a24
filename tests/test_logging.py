"""Tests for request-context logging."""

import json
import logging

import pytest

from admin_api.database.models import Application
from admin_api.utils.logging import (
    ConsoleFormatter,
    JSONFormatter,
    RequestContextFilter,
    request_id_var,
    source_table_var,
    staff_id_var,
)


@pytest.fixture
def context():
    tokens = [
        (request_id_var, request_id_var.set("req-1")),
        (staff_id_var, staff_id_var.set("staff-1")),
        (source_table_var, source_table_var.set("applications")),
    ]
    yield
    for var, token in reversed(tokens):
        var.reset(token)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("admin_api.audit", logging.INFO, __file__, 1, "note event", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_filter_stamps_request_context(context):
    record = _record()
    assert RequestContextFilter().filter(record) is True
    assert record.request_id == "req-1"
    assert record.staff_id == "staff-1"
    assert record.source_table == "applications"


def test_filter_keeps_values_set_by_the_call_site(context):
    record = _record(staff_id="staff-2")
    RequestContextFilter().filter(record)
    assert record.staff_id == "staff-2"
    assert record.request_id == "req-1"


def test_json_line_carries_context_and_known_fields_only(context):
    record = _record(lead_id="lead-9", event_kind="note", auth_header="Bearer secret")
    RequestContextFilter().filter(record)

    entry = json.loads(JSONFormatter().format(record))

    assert entry["message"] == "note event"
    assert entry["logger"] == "admin_api.audit"
    assert entry["lead_id"] == "lead-9"
    assert entry["event_kind"] == "note"
    assert entry["request_id"] == "req-1"
    assert entry["staff_id"] == "staff-1"
    assert entry["source_table"] == "applications"
    assert "auth_header" not in entry
    assert "created_by" not in entry


def test_console_line_shows_context():
    line = ConsoleFormatter().format(_record(request_id="req-1", source_table="inquiries"))
    assert "[req-1 inquiries] note event" in line

    line = ConsoleFormatter().format(_record())
    assert "[-] note event" in line


@pytest.mark.asyncio
async def test_access_and_audit_lines_name_the_staff_member(client, admin_staff, session, caplog, monkeypatch):
    row = Application(full_name="Maria Lopez", email="maria@example.com", status="new")
    session.add(row)
    await session.commit()

    monkeypatch.setattr(logging.getLogger("admin_api"), "propagate", True)
    caplog.handler.addFilter(RequestContextFilter())
    with caplog.at_level(logging.INFO, logger="admin_api"):
        response = await client.post(
            f"/api/admin/inbox/applications/{row.id}/note",
            json={"body": "Called"},
            headers={"X-Request-ID": "req-note"},
        )
    assert response.status_code == 200

    access = [r for r in caplog.records if r.name == "admin_api.http"]
    assert len(access) == 1
    assert access[0].staff_id == admin_staff.user_id
    assert access[0].status_code == 200
    assert access[0].request_id == "req-note"

    audit = [r for r in caplog.records if r.name == "admin_api.audit" and r.event_kind == "note"]
    assert len(audit) == 1
    assert audit[0].staff_id == admin_staff.user_id
    assert audit[0].source_table == "applications"
