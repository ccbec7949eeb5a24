"""Authentication and authorization."""

from admin_api.auth.dependencies import (
    ADMIN_ROLES,
    StaffGate,
    get_current_claims,
    get_token_from_header,
    require_staff,
    resolve_staff,
)
from admin_api.auth.jwks import Auth0JWKSClient, TokenClaims, get_jwks_client

__all__ = [
    "ADMIN_ROLES",
    "Auth0JWKSClient",
    "StaffGate",
    "TokenClaims",
    "get_current_claims",
    "get_jwks_client",
    "get_token_from_header",
    "require_staff",
    "resolve_staff",
]
