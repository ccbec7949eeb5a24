"""Diploma portal service: students, their items and announcements."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.clients.resend_client import ResendClient
from admin_api.config import PortalSettings, get_settings
from admin_api.database.models import DiplomaAnnouncement, DiplomaStudent, DiplomaStudentItem
from admin_api.exceptions import APIException, BadRequestError, NotFoundError
from admin_api.repositories.diploma_repository import (
    STUDENT_SORT_COLUMNS,
    DiplomaAnnouncementRepository,
    DiplomaItemRepository,
    DiplomaStudentRepository,
)
from admin_api.services.email_templates import build_welcome_email

logger = logging.getLogger(__name__)

DERIVED_SORT_COLUMNS = ("item_count", "overdue_count")
ITEM_TYPES = ("task", "note", "resource")


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _student_row(student: DiplomaStudent, counts: Optional[tuple] = None) -> Dict[str, Any]:
    item_count, overdue_count = counts or (0, 0)
    return {
        "id": student.id,
        "full_name": student.full_name,
        "email": student.email,
        "cohort": student.cohort,
        "auth0_sub": student.auth0_sub,
        "drive_binder_url": student.drive_binder_url,
        "drive_folder_url": student.drive_folder_url,
        "created_at": student.created_at,
        "updated_at": student.updated_at,
        "item_count": item_count,
        "overdue_count": overdue_count,
    }


class DiplomaService:
    """Service for diploma students, items and announcements."""

    def __init__(
        self,
        session: AsyncSession,
        email_client: Optional[ResendClient] = None,
        portal: Optional[PortalSettings] = None,
    ) -> None:
        self._students = DiplomaStudentRepository(session)
        self._items = DiplomaItemRepository(session)
        self._announcements = DiplomaAnnouncementRepository(session)
        self._email = email_client
        self._portal = portal or get_settings().portal

    # ------------------------------------------------------------------
    # Student-facing
    # ------------------------------------------------------------------

    async def get_student_for_sub(self, auth0_sub: str) -> DiplomaStudent:
        student = await self._students.get_by_auth0_sub(auth0_sub)
        if student is None:
            raise NotFoundError("Diploma student")
        return student

    async def list_my_items(self, auth0_sub: str) -> List[DiplomaStudentItem]:
        """Items the signed-in student may see, newest first."""
        student = await self.get_student_for_sub(auth0_sub)
        return await self._items.list_for_student(student.id, visible_only=True)

    async def list_announcements_for(self, auth0_sub: str) -> List[DiplomaAnnouncement]:
        """Active announcements for everyone plus the student's cohort, if any."""
        student = await self._students.get_by_auth0_sub(auth0_sub)
        audiences = ["all_diploma"]
        if student is not None and student.cohort:
            audiences.append(f"cohort_{student.cohort}")
        return await self._announcements.list_active(datetime.now(timezone.utc), audiences)

    # ------------------------------------------------------------------
    # Admin: students
    # ------------------------------------------------------------------

    async def list_students(
        self,
        page: int = 1,
        page_size: int = 25,
        sort: Optional[str] = None,
        direction: str = "asc",
        q: Optional[str] = None,
        cohort: Optional[str] = None,
        has_binder: bool = False,
        missing_binder: bool = False,
        missing_auth0_sub: bool = False,
        has_overdue: bool = False,
    ) -> Dict[str, Any]:
        """
        Paginated, sortable, filterable student listing.

        Sorting by a derived metric or filtering on ``has_overdue`` loads the
        whole filtered set, computes item/overdue counts in memory, then sorts
        and pages in memory. Everything else pages in the database.
        """
        page = max(1, int(page or 1))
        page_size = min(100, max(1, int(page_size or 25)))
        descending = direction == "desc"
        if sort not in STUDENT_SORT_COLUMNS and sort not in DERIVED_SORT_COLUMNS:
            sort = "full_name"
        filters = {
            "q": (q or "").strip() or None,
            "cohort": (cohort or "").strip() or None,
            "has_binder": has_binder,
            "missing_binder": missing_binder,
            "missing_auth0_sub": missing_auth0_sub,
        }

        if has_overdue or sort in DERIVED_SORT_COLUMNS:
            students, _ = await self._students.search(**filters)
            counts = await self._items.counts_by_student([s.id for s in students], _today())
            rows = [_student_row(s, counts.get(s.id)) for s in students]
            if has_overdue:
                rows = [row for row in rows if row["overdue_count"] > 0]
            if sort in DERIVED_SORT_COLUMNS:
                rows.sort(key=lambda row: ((row["full_name"] or "").lower(), row["id"]))
                rows.sort(key=lambda row: row[sort], reverse=descending)
            else:
                rows.sort(key=lambda row: (row[sort] is None, row[sort] or "", row["id"]))
                if descending:
                    rows.reverse()
            total = len(rows)
            start = (page - 1) * page_size
            return {"rows": rows[start : start + page_size], "total": total, "page": page, "pageSize": page_size}

        students, total = await self._students.search(
            sort=sort,
            descending=descending,
            offset=(page - 1) * page_size,
            limit=page_size,
            **filters,
        )
        counts = await self._items.counts_by_student([s.id for s in students], _today())
        return {
            "rows": [_student_row(s, counts.get(s.id)) for s in students],
            "total": total,
            "page": page,
            "pageSize": page_size,
        }

    async def get_student(self, student_id: str) -> DiplomaStudent:
        student = await self._students.get_by_id(student_id)
        if student is None:
            raise NotFoundError("Student", student_id)
        return student

    async def create_student(self, data: Dict[str, Any], send_welcome: bool = False) -> Dict[str, Any]:
        """
        Create a student and optionally email them a welcome.

        The welcome outcome is reported in ``welcomeEmail``; a failed send
        never undoes the creation.
        """
        student = await self._students.create(**data)
        await self._students.commit()
        logger.info(f"Created diploma student {student.id}")

        outcome: Dict[str, Any] = {"requested": send_welcome, "ok": False, "skipped": not send_welcome}
        if send_welcome:
            first_name = student.full_name.split()[0] if student.full_name.split() else None
            content = build_welcome_email(student.email, first_name, self._portal)
            client = self._email or ResendClient()
            try:
                await client.send_email(
                    to=student.email, subject=content.subject, text=content.text, html=content.html
                )
                outcome["ok"] = True
            except APIException as e:
                logger.warning(f"Welcome email for student {student.id} failed: {e.message}")
                outcome["error"] = e.message

        return {"student": student, "welcomeEmail": outcome}

    async def update_student(self, student_id: str, changes: Dict[str, Any]) -> DiplomaStudent:
        if not changes:
            raise BadRequestError("No fields to update")
        if "full_name" in changes and not (changes["full_name"] or "").strip():
            raise BadRequestError("full_name cannot be empty", detail={"field": "full_name"})
        if "email" in changes:
            if not changes["email"]:
                raise BadRequestError("email cannot be empty", detail={"field": "email"})
            changes["email"] = changes["email"].strip().lower()
        await self.get_student(student_id)
        student = await self._students.update(student_id, **changes)
        await self._students.commit()
        return student

    # ------------------------------------------------------------------
    # Admin: items
    # ------------------------------------------------------------------

    async def list_items(self, student_id: str) -> List[DiplomaStudentItem]:
        """All items for a student, by due date (undated last), newest first."""
        await self.get_student(student_id)
        return await self._items.list_for_student(student_id)

    async def create_item(self, student_id: str, data: Dict[str, Any]) -> DiplomaStudentItem:
        await self.get_student(student_id)
        item = await self._items.create(student_id=student_id, created_by_admin=True, **data)
        await self._items.commit()
        return item

    async def update_item(self, item_id: str, changes: Dict[str, Any]) -> DiplomaStudentItem:
        if not changes:
            raise BadRequestError("No fields to update")
        if "item_type" in changes and changes["item_type"] not in ITEM_TYPES:
            raise BadRequestError("item_type must be one of: task | note | resource")
        if "title" in changes:
            title = (changes["title"] or "").strip()
            if not title:
                raise BadRequestError("Title is required", detail={"field": "title"})
            changes["title"] = title
        if "visible_to_student" in changes:
            changes["visible_to_student"] = bool(changes["visible_to_student"])
        item = await self._items.update(item_id, **changes)
        if item is None:
            raise NotFoundError("Student item", item_id)
        await self._items.commit()
        return item

    async def delete_item(self, item_id: str) -> None:
        if not await self._items.delete(item_id):
            raise NotFoundError("Student item", item_id)
        await self._items.commit()

    # ------------------------------------------------------------------
    # Admin: announcements
    # ------------------------------------------------------------------

    async def list_announcements(self) -> List[DiplomaAnnouncement]:
        return await self._announcements.list_newest_first()

    async def create_announcement(self, data: Dict[str, Any]) -> DiplomaAnnouncement:
        announcement = await self._announcements.create(
            title=data["title"],
            body=(data.get("body") or "").strip(),
            drive_link_url=data.get("drive_link_url"),
            audience=data.get("audience") or "all_diploma",
            starts_at=data.get("starts_at") or datetime.now(timezone.utc),
            ends_at=data.get("ends_at"),
        )
        await self._announcements.commit()
        return announcement
