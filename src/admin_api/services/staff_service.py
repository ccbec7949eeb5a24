"""Staff administration: listing, invites and updates."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.clients.auth0_management import Auth0ManagementClient
from admin_api.clients.resend_client import ResendClient
from admin_api.config import PortalSettings, get_settings
from admin_api.database.models import Staff
from admin_api.exceptions import (
    APIException,
    BadRequestError,
    IdentityProvisionError,
    NotFoundError,
)
from admin_api.repositories.staff_repository import StaffRepository, normalize_email
from admin_api.services.email_templates import build_admin_invite_email

logger = logging.getLogger(__name__)


class StaffService:
    """Service for staff administration."""

    def __init__(
        self,
        session: AsyncSession,
        auth0: Optional[Auth0ManagementClient] = None,
        email_client: Optional[ResendClient] = None,
        portal: Optional[PortalSettings] = None,
    ) -> None:
        self._repo = StaffRepository(session)
        self._auth0 = auth0
        self._email = email_client
        self._portal = portal or get_settings().portal

    async def list_staff(self) -> List[Staff]:
        """All staff, newest first."""
        return await self._repo.list_newest_first()

    async def _create_or_reactivate(self, email: str, role: str, active: bool) -> Staff:
        existing = await self._repo.get_by_email(email)
        if existing is not None:
            staff = await self._repo.update(existing.user_id, active=active, email=email)
            await self._repo.commit()
            logger.info(f"Re-activated staff {staff.user_id} via invite")
            return staff

        staff = await self._repo.create(email=email, role=role, active=active, auth0_sub=None)
        await self._repo.commit()
        logger.info(f"Created staff {staff.user_id} via invite")
        return staff

    async def invite(self, email: str, role: str = "admin", active: bool = True) -> Dict[str, Any]:
        """
        Invite a staff member.

        1. Create the staff row, or re-activate the row with this email.
        2. Get or create the Auth0 user, issue a password-change ticket and
           store the user's ``auth0_sub`` on the staff row.
        3. Send the invite email. A send failure is reported, not raised.

        Raises:
            IdentityProvisionError: if step 2 fails (the staff row is kept)
        """
        email = normalize_email(email)
        if not email:
            raise BadRequestError("email is required", detail={"field": "email"})

        staff = await self._create_or_reactivate(email, role, active)

        auth0 = self._auth0 or Auth0ManagementClient()
        try:
            auth0_user = await auth0.get_or_create_user_by_email(email)
            set_password_url = await auth0.create_password_change_ticket(auth0_user["user_id"])
        except (APIException, KeyError) as e:
            logger.error(f"Auth0 provisioning failed for staff {staff.user_id}: {e}")
            raise IdentityProvisionError(detail=getattr(e, "message", None) or str(e)) from e

        auth0_sub = auth0_user["user_id"]
        staff = await self._repo.update(staff.user_id, auth0_sub=auth0_sub)
        await self._repo.commit()

        invite_send = await self._send_invite(email, set_password_url)

        return {
            "ok": True,
            "staff": staff,
            "auth0_sub": auth0_sub,
            "setPasswordUrl": set_password_url,
            "inviteSend": invite_send,
        }

    async def _send_invite(self, email: str, set_password_url: Optional[str]) -> Dict[str, Any]:
        content = build_admin_invite_email(email, self._portal, set_password_url)
        client = self._email or ResendClient()
        try:
            result = await client.send_email(
                to=email, subject=content.subject, text=content.text, html=content.html
            )
        except APIException as e:
            logger.warning(f"Invite email to staff failed: {e.message}")
            return {"ok": False, "error": e.message}
        return {"ok": True, "id": result.get("id")}

    async def update_staff(self, user_id: str, changes: Dict[str, Any]) -> Staff:
        """
        Apply {active?, email?, role?} to a staff row.

        Raises:
            BadRequestError: if nothing to update, or the change would
                deactivate the last active staff member
            NotFoundError: if the staff row does not exist
        """
        if not changes:
            raise BadRequestError("No fields to update")

        staff = await self._repo.get_by_id(user_id)
        if staff is None:
            raise NotFoundError("Staff", user_id)

        if changes.get("active") is False and staff.active:
            if await self._repo.count_active() <= 1:
                raise BadRequestError("Cannot deactivate the last active admin.")

        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
            if not changes["email"]:
                raise BadRequestError("email cannot be empty", detail={"field": "email"})

        staff = await self._repo.update(user_id, **changes)
        await self._repo.commit()
        logger.info(f"Updated staff {user_id}: {sorted(changes)}")
        return staff
