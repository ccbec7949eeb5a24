"""Admin inbox endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from admin_api.api.params import source_table_filter, source_table_path
from admin_api.auth.dependencies import ADMIN_ROLES, require_staff
from admin_api.database.models import Staff
from admin_api.dependencies import get_inbox_actions, get_inbox_service
from admin_api.models.inbox import (
    InboxDetailResponse,
    InboxListResponse,
    InboxPatchRequest,
    InboxPatchResponse,
    InboxRow,
    LeadEventResponse,
    LeadResponse,
    NoteRequest,
    OkResponse,
    ReplyRequest,
    ReplyResponse,
)
from admin_api.services.inbox_actions import InboxActionsService
from admin_api.services.inbox_service import InboxService
from admin_api.services.sources import SourceTable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["inbox"])


def _inbox_row(row: Optional[dict]) -> Optional[InboxRow]:
    return InboxRow.model_validate(row) if row is not None else None


@router.get("/inbox", response_model=InboxListResponse, status_code=status.HTTP_200_OK)
async def list_inbox(
    source_table: Optional[SourceTable] = Depends(source_table_filter),
    staff: Staff = Depends(require_staff()),
    scope: str = Query("open", description="open | all"),
    page: int = Query(1, description="1-indexed page"),
    page_size: Optional[int] = Query(None, alias="pageSize", description="Rows per page (max 100)"),
    q: Optional[str] = Query(None, description="Search name, email, organization, city, interest"),
    kind: Optional[str] = Query(None),
    assigned_to: Optional[str] = Query(None),
    service: InboxService = Depends(get_inbox_service),
) -> InboxListResponse:
    """
    List inbox rows, newest first.

    **Authentication**: any active staff member
    """
    result = await service.list_inbox(
        scope=scope,
        page=page,
        page_size=page_size,
        q=q,
        kind=(kind or "").strip() or None,
        source_table=source_table.value if source_table else None,
        assigned_to=(assigned_to or "").strip() or None,
    )
    return InboxListResponse.model_validate(result)


@router.get("/inbox/{source_table}/{source_id}", response_model=InboxDetailResponse)
async def get_inbox_detail(
    source_id: str,
    source_table: SourceTable = Depends(source_table_path),
    staff: Staff = Depends(require_staff()),
    actions: InboxActionsService = Depends(get_inbox_actions),
) -> InboxDetailResponse:
    """
    Inbox row, raw source row, lead and events (newest first).

    The lead is created on first access.
    """
    detail = await actions.get_detail(source_table, source_id)
    return InboxDetailResponse(
        inbox=_inbox_row(detail["inbox"]),
        source=detail["source"],
        lead=LeadResponse.model_validate(detail["lead"]),
        events=[LeadEventResponse.model_validate(event) for event in detail["events"]],
    )


@router.patch("/inbox/{source_table}/{source_id}", response_model=InboxPatchResponse)
async def patch_inbox_item(
    body: InboxPatchRequest,
    source_id: str,
    source_table: SourceTable = Depends(source_table_path),
    staff: Staff = Depends(require_staff(ADMIN_ROLES)),
    actions: InboxActionsService = Depends(get_inbox_actions),
) -> InboxPatchResponse:
    """
    Update source status, assignment and lead status.

    Omitted fields are left untouched; an explicit empty ``assigned_to``
    unassigns.
    """
    result = await actions.update(
        source_table,
        source_id,
        body.model_dump(exclude_unset=True),
        actor=staff.user_id,
    )
    return InboxPatchResponse(
        ok=True,
        lead=LeadResponse.model_validate(result["lead"]),
        inbox=_inbox_row(result["inbox"]),
    )


@router.post("/inbox/{source_table}/{source_id}/note", response_model=OkResponse)
async def add_inbox_note(
    body: NoteRequest,
    source_id: str,
    source_table: SourceTable = Depends(source_table_path),
    staff: Staff = Depends(require_staff(ADMIN_ROLES)),
    actions: InboxActionsService = Depends(get_inbox_actions),
) -> OkResponse:
    """Append a note to the lead's audit trail."""
    await actions.add_note(source_table, source_id, body=body.body, title=body.title, actor=staff.user_id)
    return OkResponse()


@router.post("/inbox/{source_table}/{source_id}/reply", response_model=ReplyResponse)
async def reply_to_inbox_item(
    body: ReplyRequest,
    source_id: str,
    source_table: SourceTable = Depends(source_table_path),
    staff: Staff = Depends(require_staff(ADMIN_ROLES)),
    actions: InboxActionsService = Depends(get_inbox_actions),
) -> ReplyResponse:
    """Email the contact, log the email on the lead, then apply optional statuses."""
    result = await actions.reply(
        source_table,
        source_id,
        to=str(body.to),
        subject=body.subject,
        text=body.text,
        html=body.html,
        set_source_status=body.set_source_status,
        set_lead_status=body.set_lead_status,
        actor=staff.user_id,
    )
    return ReplyResponse(ok=True, resend=result["resend"])
