"""Lead resolution and mutation.

A lead is created lazily the first time staff open a source row, and every
state-affecting change afterwards lands in the ``lead_events`` audit trail.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.database.models import Lead, LeadEvent
from admin_api.exceptions import BadRequestError, DatabaseError
from admin_api.repositories.lead_repository import LeadEventRepository, LeadRepository
from admin_api.services.sources import LeadEventKind, SourceTable, lead_kind_for_source
from admin_api.services.status_registry import StatusRegistry
from admin_api.utils.logging import log_lead_event

logger = logging.getLogger(__name__)


class _Unset:
    """Marker for an argument that was not provided."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class LeadService:
    """Service for lead get-or-create, updates and audit events."""

    def __init__(self, session: AsyncSession, status_registry: StatusRegistry) -> None:
        self._leads = LeadRepository(session)
        self._events = LeadEventRepository(session)
        self._registry = status_registry

    async def get_or_create_lead(
        self,
        source_table: SourceTable,
        source_id: str,
        assigned_to: Optional[str] = None,
        source_page: Optional[str] = None,
    ) -> Lead:
        """
        Return the single lead for a source row, creating it on first access.

        ``assigned_to`` and ``source_page`` only apply when the lead is
        created; an existing lead is returned unmodified.
        """
        source_table = SourceTable(source_table)
        existing = await self._leads.get_by_source(source_table.value, source_id)
        if existing is not None:
            return existing

        await self._leads.insert_if_absent(
            kind=lead_kind_for_source(source_table).value,
            source_table=source_table.value,
            source_row_id=source_id,
            source_page=source_page or None,
            assigned_to=assigned_to or None,
            status=await self._registry.initial_status(),
            priority="normal",
        )

        # Re-read: under a race this is the winner's row
        lead = await self._leads.get_by_source(source_table.value, source_id)
        if lead is None:
            raise DatabaseError(
                "Failed to create lead",
                detail=f"lead for {source_table.value}:{source_id} missing after upsert",
            )

        # Not atomic with the upsert; two first accesses racing here can both
        # seed. A duplicate "Lead created" entry is tolerated.
        if not await self._events.has_any(lead.id):
            await self.add_lead_event(
                lead_id=lead.id,
                event_kind=LeadEventKind.OTHER,
                title="Lead created",
                body=f"Created lead for {source_table.value}:{source_id}",
            )
            logger.info(f"Created lead {lead.id} for {source_table.value}:{source_id}")

        return lead

    async def add_lead_event(
        self,
        lead_id: str,
        event_kind: LeadEventKind | str,
        title: Optional[str] = None,
        body: Optional[str] = None,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> LeadEvent:
        """Append one event to a lead's audit trail."""
        try:
            kind = LeadEventKind(event_kind)
        except ValueError as e:
            raise BadRequestError(
                f"Invalid event_kind: {event_kind!r}",
                detail={"field": "event_kind", "value": str(event_kind)},
            ) from e

        event = await self._events.append(
            lead_id=lead_id,
            event_kind=kind.value,
            title=title or None,
            body=body or None,
            from_status=from_status or None,
            to_status=to_status or None,
            created_by=created_by or None,
        )
        log_lead_event(lead_id, kind.value, title=title, created_by=created_by)
        return event

    async def update_lead_status_and_assign(
        self,
        lead: Lead,
        to_status: Any = UNSET,
        assigned_to: Any = UNSET,
        actor: Optional[str] = None,
    ) -> Lead:
        """
        Apply a status and/or assignment change to a lead.

        Only differing fields are written. The update is committed before
        its audit events are written; an event that then fails to write is
        logged and the updated lead is still returned.

        Raises:
            InvalidStatusError: if ``to_status`` is not registered (nothing is written)
        """
        changes = {}
        from_status = lead.status

        if to_status is not UNSET and to_status is not None:
            await self._registry.validate_status(to_status, field="lead_status")
            if to_status != lead.status:
                changes["status"] = to_status

        if assigned_to is not UNSET:
            new_assignee = assigned_to or None
            if new_assignee != lead.assigned_to:
                changes["assigned_to"] = new_assignee

        if not changes:
            return lead

        updated = await self._leads.apply_changes(lead, changes)

        if "status" in changes:
            await self._record_after_commit(
                lead_id=updated.id,
                event_kind=LeadEventKind.STATUS_CHANGE,
                title="Status changed",
                body=f"Lead status changed: {from_status} → {changes['status']}",
                from_status=from_status,
                to_status=changes["status"],
                created_by=actor,
            )

        if "assigned_to" in changes:
            await self._record_after_commit(
                lead_id=updated.id,
                event_kind=LeadEventKind.OTHER,
                title="Assignment changed",
                body="Lead assigned_to updated.",
                created_by=actor,
            )

        return updated

    async def _record_after_commit(self, **event: Any) -> None:
        try:
            await self.add_lead_event(**event)
        except DatabaseError as e:
            logger.error(
                f"Audit event '{event.get('title')}' for lead {event.get('lead_id')} "
                f"was not written after a committed update: {e.detail or e.message}"
            )

    async def list_events(self, lead_id: str) -> List[LeadEvent]:
        """Events for a lead, newest first."""
        return await self._events.list_for_lead(lead_id)
