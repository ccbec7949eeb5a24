"""Staff actions on an inbox item: detail, update, note and reply.

Every action resolves the lead for the source row first, so the audit trail
exists before anything is written against it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.clients.resend_client import ResendClient
from admin_api.exceptions import NotFoundError
from admin_api.repositories.source_repository import SourceRowRepository
from admin_api.services.email_templates import build_reply_event_body
from admin_api.services.inbox_service import InboxService
from admin_api.services.lead_service import UNSET, LeadService
from admin_api.services.sources import LeadEventKind, SourceTable, source_model_for
from admin_api.services.status_registry import StatusRegistry

logger = logging.getLogger(__name__)


class InboxActionsService:
    """Detail, patch, note and reply for one source row."""

    def __init__(
        self,
        session: AsyncSession,
        status_registry: StatusRegistry,
        email_client: Optional[ResendClient] = None,
    ) -> None:
        self.session = session
        self.registry = status_registry
        self.leads = LeadService(session, status_registry)
        self.inbox = InboxService(session)
        self.email_client = email_client

    def _source_repo(self, source_table: SourceTable) -> SourceRowRepository:
        return SourceRowRepository(source_model_for(source_table), self.session)

    async def _require_source_row(self, source_table: SourceTable, source_id: str) -> Dict[str, Any]:
        row = await self._source_repo(source_table).get(source_id)
        if row is None:
            raise NotFoundError("Source row", source_id)
        return row

    async def get_detail(self, source_table: SourceTable, source_id: str) -> Dict[str, Any]:
        """Return {inbox, source, lead, events}; events newest first."""
        inbox_row = await self.inbox.get_inbox_row(source_table, source_id)
        source_row = await self._require_source_row(source_table, source_id)

        lead = await self.leads.get_or_create_lead(
            source_table,
            source_id,
            assigned_to=(inbox_row or {}).get("assigned_to") or source_row.get("assigned_to"),
            source_page=(inbox_row or {}).get("source_page") or source_row.get("source_page"),
        )
        events = await self.leads.list_events(lead.id)
        return {"inbox": inbox_row, "source": source_row, "lead": lead, "events": events}

    async def _apply_source_status(
        self,
        source_table: SourceTable,
        source_id: str,
        current_status: Optional[str],
        new_status: str,
        lead_id: str,
        actor: Optional[str],
    ) -> None:
        await self._source_repo(source_table).update_fields(source_id, status=new_status)
        if new_status != current_status:
            await self.leads.add_lead_event(
                lead_id=lead_id,
                event_kind=LeadEventKind.OTHER,
                title="Source status changed",
                body=f"{source_table.value} status changed: {current_status} → {new_status}",
                created_by=actor,
            )

    async def update(
        self,
        source_table: SourceTable,
        source_id: str,
        changes: Dict[str, Any],
        actor: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Apply {source_status?, assigned_to?, lead_status?} to the source row and lead.

        Only keys present in ``changes`` are applied. Both statuses are
        validated before anything is written.
        """
        source_status = changes.get("source_status")
        lead_status = changes.get("lead_status")
        if source_status is not None:
            await self.registry.validate_status(source_status, field="source_status")
        if lead_status is not None:
            await self.registry.validate_status(lead_status, field="lead_status")

        source_row = await self._require_source_row(source_table, source_id)
        lead = await self.leads.get_or_create_lead(
            source_table,
            source_id,
            assigned_to=source_row.get("assigned_to"),
            source_page=source_row.get("source_page"),
        )

        repo = self._source_repo(source_table)
        if "assigned_to" in changes and repo.has_assigned_to:
            await repo.update_fields(source_id, assigned_to=changes["assigned_to"])

        if source_status is not None:
            await self._apply_source_status(
                source_table, source_id, source_row.get("status"), source_status, lead.id, actor
            )

        lead = await self.leads.update_lead_status_and_assign(
            lead,
            to_status=lead_status if lead_status is not None else UNSET,
            assigned_to=changes["assigned_to"] if "assigned_to" in changes else UNSET,
            actor=actor,
        )
        inbox_row = await self.inbox.get_inbox_row(source_table, source_id)
        return {"ok": True, "lead": lead, "inbox": inbox_row}

    async def add_note(
        self,
        source_table: SourceTable,
        source_id: str,
        body: str,
        title: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> None:
        """Append a note event to the lead for a source row."""
        await self._require_source_row(source_table, source_id)
        lead = await self.leads.get_or_create_lead(source_table, source_id)
        await self.leads.add_lead_event(
            lead_id=lead.id,
            event_kind=LeadEventKind.NOTE,
            title=(title or "").strip() or "Note",
            body=body,
            created_by=actor,
        )

    async def reply(
        self,
        source_table: SourceTable,
        source_id: str,
        to: str,
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None,
        set_source_status: Optional[str] = None,
        set_lead_status: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Email the contact, log an ``email`` event, then apply optional statuses.

        Statuses are validated before the email is sent so a bad status never
        leaves a sent email without its follow-up update.
        """
        if set_source_status:
            await self.registry.validate_status(set_source_status, field="set_source_status")
        if set_lead_status:
            await self.registry.validate_status(set_lead_status, field="set_lead_status")

        source_row = await self._require_source_row(source_table, source_id)

        client = self.email_client or ResendClient()
        result = await client.send_email(to=to, subject=subject, text=text, html=html)

        lead = await self.leads.get_or_create_lead(
            source_table,
            source_id,
            assigned_to=source_row.get("assigned_to"),
            source_page=source_row.get("source_page"),
        )
        await self.leads.add_lead_event(
            lead_id=lead.id,
            event_kind=LeadEventKind.EMAIL,
            title=subject,
            body=build_reply_event_body(to, subject, result.get("id"), text),
            created_by=actor,
        )

        if set_source_status:
            await self._apply_source_status(
                source_table, source_id, source_row.get("status"), set_source_status, lead.id, actor
            )
        if set_lead_status:
            await self.leads.update_lead_status_and_assign(lead, to_status=set_lead_status, actor=actor)

        return {"ok": True, "resend": result}
