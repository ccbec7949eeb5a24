"""Staff administration endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from admin_api.auth.dependencies import ADMIN_ROLES, require_staff
from admin_api.database.models import Staff
from admin_api.dependencies import get_staff_service
from admin_api.models.staff import (
    StaffInviteRequest,
    StaffInviteResponse,
    StaffPatchRequest,
    StaffPatchResponse,
    StaffResponse,
)
from admin_api.services.staff_service import StaffService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/staff", tags=["staff"])


@router.get("", response_model=List[StaffResponse])
async def list_staff(
    staff: Staff = Depends(require_staff(ADMIN_ROLES)),
    service: StaffService = Depends(get_staff_service),
) -> List[StaffResponse]:
    """All staff members, newest first."""
    members = await service.list_staff()
    return [StaffResponse.model_validate(member) for member in members]


@router.post(
    "/invite",
    response_model=StaffInviteResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def invite_staff(
    body: StaffInviteRequest,
    staff: Staff = Depends(require_staff(ADMIN_ROLES)),
    service: StaffService = Depends(get_staff_service),
) -> StaffInviteResponse:
    """
    Invite a staff member by email.

    Creates (or reactivates) the staff row, provisions the Auth0 user,
    issues a set-password link and emails it. A failed email is reported
    in ``inviteSend`` and does not fail the request.
    """
    logger.info(f"Staff invite requested by {staff.user_id} for {body.email}")
    result = await service.invite(email=body.email, role=body.role, active=body.active)
    return StaffInviteResponse(
        ok=True,
        staff=StaffResponse.model_validate(result["staff"]),
        auth0_sub=result.get("auth0_sub"),
        set_password_url=result.get("setPasswordUrl"),
        invite_send=result.get("inviteSend") or {},
    )


@router.patch("/{user_id}", response_model=StaffPatchResponse)
async def update_staff(
    user_id: str,
    body: StaffPatchRequest,
    staff: Staff = Depends(require_staff(ADMIN_ROLES)),
    service: StaffService = Depends(get_staff_service),
) -> StaffPatchResponse:
    """Change a staff member's active flag, email or role."""
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    member = await service.update_staff(user_id, changes)
    return StaffPatchResponse(ok=True, staff=StaffResponse.model_validate(member))
