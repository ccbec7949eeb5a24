"""FastAPI dependencies shared by the routers."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.clients.auth0_management import Auth0ManagementClient, get_auth0_management_client
from admin_api.clients.resend_client import ResendClient, get_resend_client
from admin_api.database.session import get_session
from admin_api.services.diploma_service import DiplomaService
from admin_api.services.inbox_actions import InboxActionsService
from admin_api.services.inbox_service import InboxService
from admin_api.services.staff_service import StaffService
from admin_api.services.status_registry import StatusRegistry


def get_status_registry(request: Request) -> StatusRegistry:
    """The process-wide status registry created at startup."""
    return request.app.state.status_registry


async def get_inbox_service(session: AsyncSession = Depends(get_session)) -> InboxService:
    return InboxService(session)


async def get_inbox_actions(
    session: AsyncSession = Depends(get_session),
    registry: StatusRegistry = Depends(get_status_registry),
    email_client: ResendClient = Depends(get_resend_client),
) -> InboxActionsService:
    return InboxActionsService(session, registry, email_client)


async def get_staff_service(
    session: AsyncSession = Depends(get_session),
    auth0: Auth0ManagementClient = Depends(get_auth0_management_client),
    email_client: ResendClient = Depends(get_resend_client),
) -> StaffService:
    return StaffService(session, auth0=auth0, email_client=email_client)


async def get_diploma_service(
    session: AsyncSession = Depends(get_session),
    email_client: ResendClient = Depends(get_resend_client),
) -> DiplomaService:
    return DiplomaService(session, email_client=email_client)


__all__ = [
    "get_session",
    "get_status_registry",
    "get_inbox_service",
    "get_inbox_actions",
    "get_staff_service",
    "get_diploma_service",
]
