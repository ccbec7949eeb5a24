"""FastAPI dependencies for authentication and the staff gate."""

import logging
from typing import Iterable, Optional, Sequence

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from admin_api.auth.jwks import Auth0JWKSClient, TokenClaims, get_jwks_client
from admin_api.database.models import Staff
from admin_api.database.session import get_session
from admin_api.exceptions import AuthenticationError, AuthorizationError
from admin_api.repositories.staff_repository import StaffRepository, normalize_email
from admin_api.utils.logging import set_staff_id

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)

ADMIN_ROLES = ("admin", "super_admin")


async def get_token_from_header(
    authorization: Optional[str] = Header(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Extract the bearer token from the Authorization header."""
    if credentials:
        return credentials.credentials

    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:].strip()
        return token or None

    return None


async def get_current_claims(
    token: Optional[str] = Depends(get_token_from_header),
    jwks_client: Auth0JWKSClient = Depends(get_jwks_client),
) -> TokenClaims:
    """
    Verify the access token and return its claims.

    Raises:
        AuthenticationError: MISSING_TOKEN, INVALID_TOKEN or MISSING_SUB
    """
    if not token:
        raise AuthenticationError("Missing bearer token", code="MISSING_TOKEN")

    claims = await jwks_client.verify_token(token)
    if not claims.sub:
        raise AuthenticationError("Missing sub in token", code="MISSING_SUB")
    return claims


async def resolve_staff(session: AsyncSession, claims: TokenClaims) -> Optional[Staff]:
    """
    Find the staff row for a token.

    Looks up by subject first, then by normalized email. A row found by email
    that has no subject yet is linked to this token's subject. A row linked
    to another subject is still returned, unchanged: the tenant's email is
    the staff identity.
    """
    repo = StaffRepository(session)

    staff = await repo.get_by_auth0_sub(claims.sub)
    if staff is not None:
        return staff

    email = normalize_email(claims.email)
    if not email:
        return None

    staff = await repo.get_by_email(email)
    if staff is not None and not staff.auth0_sub:
        staff = await repo.update(staff.user_id, auth0_sub=claims.sub)
        await repo.commit()
        logger.info(f"Linked staff {staff.user_id} to token subject on first sign-in")
    return staff


class StaffGate:
    """Dependency admitting active staff, optionally restricted to roles."""

    def __init__(self, roles: Optional[Iterable[str]] = None):
        self.roles: Sequence[str] = tuple(roles) if roles else ()

    async def __call__(
        self,
        request: Request,
        claims: TokenClaims = Depends(get_current_claims),
        session: AsyncSession = Depends(get_session),
    ) -> Staff:
        staff = await resolve_staff(session, claims)

        if staff is None or not staff.active:
            raise AuthorizationError("Admin access not enabled for this user")

        if self.roles and staff.role not in self.roles:
            raise AuthorizationError("Insufficient role", detail={"required": list(self.roles)})

        # Access log and every record logged while handling the request name this staff member
        request.state.staff_id = staff.user_id
        set_staff_id(staff.user_id)
        return staff


def require_staff(roles: Optional[Iterable[str]] = None) -> StaffGate:
    """
    Build a staff gate dependency.

    Usage:
        @router.get("/staff")
        async def list_staff(staff: Staff = Depends(require_staff(ADMIN_ROLES))):
            ...
    """
    return StaffGate(roles)
