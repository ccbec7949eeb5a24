"""Diploma portal repositories."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import Select, and_, case, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.database.models import DiplomaAnnouncement, DiplomaStudent, DiplomaStudentItem
from admin_api.exceptions import DatabaseError
from admin_api.repositories.base import BaseRepository, escape_like

logger = logging.getLogger(__name__)

STUDENT_SORT_COLUMNS = ("full_name", "email", "cohort", "created_at", "updated_at")


class DiplomaStudentRepository(BaseRepository[DiplomaStudent]):
    """Repository for diploma students."""

    def __init__(self, session: AsyncSession):
        super().__init__(DiplomaStudent, session)

    async def get_by_auth0_sub(self, auth0_sub: str) -> Optional[DiplomaStudent]:
        """Get the student linked to a token subject."""
        try:
            result = await self.session.execute(
                select(DiplomaStudent).where(DiplomaStudent.auth0_sub == auth0_sub)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting diploma student by auth0_sub: {e}")
            raise DatabaseError("Failed to fetch diploma student", detail=str(e)) from e

    def _filtered(
        self,
        q: Optional[str] = None,
        cohort: Optional[str] = None,
        has_binder: bool = False,
        missing_binder: bool = False,
        missing_auth0_sub: bool = False,
    ) -> Select:
        query = select(DiplomaStudent)
        if q:
            like = f"%{escape_like(q)}%"
            query = query.where(
                or_(
                    DiplomaStudent.full_name.ilike(like, escape="\\"),
                    DiplomaStudent.email.ilike(like, escape="\\"),
                )
            )
        if cohort:
            query = query.where(DiplomaStudent.cohort == cohort)
        if has_binder:
            query = query.where(
                and_(DiplomaStudent.drive_binder_url.is_not(None), DiplomaStudent.drive_binder_url != "")
            )
        if missing_binder:
            query = query.where(
                or_(DiplomaStudent.drive_binder_url.is_(None), DiplomaStudent.drive_binder_url == "")
            )
        if missing_auth0_sub:
            query = query.where(or_(DiplomaStudent.auth0_sub.is_(None), DiplomaStudent.auth0_sub == ""))
        return query

    async def search(
        self,
        *,
        sort: str = "full_name",
        descending: bool = False,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        **filters,
    ) -> Tuple[List[DiplomaStudent], int]:
        """
        Filter, sort and optionally page students.

        Returns:
            (rows, total) where total counts the whole filtered set
        """
        if sort not in STUDENT_SORT_COLUMNS:
            sort = "full_name"
        column = getattr(DiplomaStudent, sort)
        query = self._filtered(**filters)
        try:
            total = (
                await self.session.execute(select(func.count()).select_from(query.subquery()))
            ).scalar() or 0

            ordered = query.order_by(column.desc() if descending else column.asc(), DiplomaStudent.id)
            if offset is not None:
                ordered = ordered.offset(offset)
            if limit is not None:
                ordered = ordered.limit(limit)
            result = await self.session.execute(ordered)
            return list(result.scalars().all()), total
        except SQLAlchemyError as e:
            logger.error(f"Error fetching admin students: {e}")
            raise DatabaseError("Failed to fetch students", detail=str(e)) from e


class DiplomaItemRepository(BaseRepository[DiplomaStudentItem]):
    """Repository for per-student items (tasks, notes, resources)."""

    def __init__(self, session: AsyncSession):
        super().__init__(DiplomaStudentItem, session)

    async def list_for_student(self, student_id: str, visible_only: bool = False) -> List[DiplomaStudentItem]:
        """
        List a student's items.

        Student-facing listings are newest first; the admin listing orders by
        due date (undated last), then newest first.
        """
        query = select(DiplomaStudentItem).where(DiplomaStudentItem.student_id == student_id)
        if visible_only:
            query = query.where(DiplomaStudentItem.visible_to_student.is_(True)).order_by(
                DiplomaStudentItem.created_at.desc()
            )
        else:
            query = query.order_by(
                DiplomaStudentItem.due_date.is_(None),
                DiplomaStudentItem.due_date.asc(),
                DiplomaStudentItem.created_at.desc(),
            )
        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error fetching items for student {student_id}: {e}")
            raise DatabaseError("Failed to fetch student items", detail=str(e)) from e

    async def counts_by_student(
        self, student_ids: Sequence[str], today: date
    ) -> Dict[str, Tuple[int, int]]:
        """Return {student_id: (item_count, overdue_count)} for the given students."""
        if not student_ids:
            return {}
        overdue = case(
            (
                and_(
                    DiplomaStudentItem.item_type == "task",
                    DiplomaStudentItem.due_date.is_not(None),
                    DiplomaStudentItem.due_date < today,
                ),
                1,
            ),
            else_=0,
        )
        query = (
            select(
                DiplomaStudentItem.student_id,
                func.count(DiplomaStudentItem.id),
                func.coalesce(func.sum(overdue), 0),
            )
            .where(DiplomaStudentItem.student_id.in_(list(student_ids)))
            .group_by(DiplomaStudentItem.student_id)
        )
        try:
            result = await self.session.execute(query)
            return {row[0]: (int(row[1]), int(row[2])) for row in result.all()}
        except SQLAlchemyError as e:
            logger.error(f"Error counting student items: {e}")
            raise DatabaseError("Failed to count student items", detail=str(e)) from e


class DiplomaAnnouncementRepository(BaseRepository[DiplomaAnnouncement]):
    """Repository for diploma announcements."""

    def __init__(self, session: AsyncSession):
        super().__init__(DiplomaAnnouncement, session)

    async def list_newest_first(self) -> List[DiplomaAnnouncement]:
        try:
            result = await self.session.execute(
                select(DiplomaAnnouncement).order_by(DiplomaAnnouncement.created_at.desc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error fetching announcements: {e}")
            raise DatabaseError("Failed to fetch announcements", detail=str(e)) from e

    async def list_active(self, now: datetime, audiences: Sequence[str]) -> List[DiplomaAnnouncement]:
        """Announcements whose window contains `now` and whose audience matches."""
        query = (
            select(DiplomaAnnouncement)
            .where(
                DiplomaAnnouncement.starts_at <= now,
                or_(DiplomaAnnouncement.ends_at.is_(None), DiplomaAnnouncement.ends_at > now),
                DiplomaAnnouncement.audience.in_(list(audiences)),
            )
            .order_by(DiplomaAnnouncement.created_at.desc())
        )
        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error fetching active announcements: {e}")
            raise DatabaseError("Failed to fetch announcements", detail=str(e)) from e
