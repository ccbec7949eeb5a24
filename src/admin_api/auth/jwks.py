"""Auth0 access token verification against the tenant's JSON Web Key Set."""

import base64
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import JWTError, jwt

from admin_api.config import Auth0Settings, get_settings
from admin_api.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def _base64url_to_int(value: str) -> int:
    padding = 4 - len(value) % 4
    if padding != 4:
        value += "=" * padding
    return int.from_bytes(base64.urlsafe_b64decode(value), byteorder="big")


class TokenClaims:
    """Claims of a verified access token."""

    def __init__(self, claims: Dict[str, Any], email_namespace: str = "https://ausa.io"):
        self.claims = claims
        self.sub: Optional[str] = claims.get("sub")
        ns = email_namespace.rstrip("/")
        self.email: Optional[str] = (
            claims.get("email")
            or claims.get(f"{ns}/email")
            or claims.get(f"{ns}/claims/email")
            or claims.get(f"{ns}/claims/email_address")
        )
        roles = claims.get(f"{ns}/claims/roles") or claims.get("roles") or []
        self.roles: List[str] = list(roles) if isinstance(roles, (list, tuple)) else []

    def __repr__(self) -> str:
        return f"<TokenClaims(sub={self.sub}, email={self.email})>"


class Auth0JWKSClient:
    """Fetches and caches signing keys, and verifies RS256 tokens."""

    def __init__(
        self,
        config: Optional[Auth0Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_settings().auth0
        self._transport = transport
        self.jwks_cache: Optional[Dict] = None
        self.jwks_cache_expiry: Optional[float] = None

    async def get_jwks(self) -> Dict:
        """Get the JSON Web Key Set, cached for ``jwks_cache_seconds``."""
        if not self.config.jwks_url:
            raise AuthenticationError("Auth0 is not configured")

        if (
            self.jwks_cache is not None
            and self.jwks_cache_expiry is not None
            and time.time() < self.jwks_cache_expiry
        ):
            return self.jwks_cache

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(self.config.jwks_url, timeout=10.0)
                response.raise_for_status()
                jwks = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch JWKS from {self.config.jwks_url}: {e}")
            raise AuthenticationError("Failed to validate token: Unable to fetch signing keys") from e

        self.jwks_cache = jwks
        self.jwks_cache_expiry = time.time() + self.config.jwks_cache_seconds
        logger.debug(f"Fetched JWKS from {self.config.jwks_url}")
        return jwks

    def get_signing_key(self, token: str, jwks: Dict) -> Optional[rsa.RSAPublicKey]:
        """Find the RSA public key matching the token's ``kid``."""
        try:
            kid = jwt.get_unverified_header(token).get("kid")
        except JWTError as e:
            logger.warning(f"Unreadable token header: {e}")
            return None

        if not kid:
            logger.warning("Token missing 'kid' in header")
            return None

        for key in jwks.get("keys", []):
            if key.get("kid") != kid:
                continue
            try:
                public_numbers = rsa.RSAPublicNumbers(_base64url_to_int(key["e"]), _base64url_to_int(key["n"]))
                return public_numbers.public_key()
            except (KeyError, ValueError) as e:
                logger.error(f"Error converting JWK to RSA key: {e}")
                return None

        logger.warning(f"Signing key with kid '{kid}' not found in JWKS")
        return None

    async def verify_token(self, token: str) -> TokenClaims:
        """
        Verify signature, audience, issuer and expiry.

        Raises:
            AuthenticationError: INVALID_TOKEN on any failure
        """
        if not self.config.is_configured:
            raise AuthenticationError("Auth0 is not configured")

        jwks = await self.get_jwks()
        public_key = self.get_signing_key(token, jwks)
        if public_key is None:
            raise AuthenticationError("Unable to find signing key for token")

        try:
            claims = jwt.decode(
                token,
                public_key,
                algorithms=["RS256"],
                audience=self.config.audience,
                issuer=self.config.issuer,
            )
        except JWTError as e:
            logger.info(f"Token rejected: {e}")
            raise AuthenticationError("Invalid token", detail=str(e)) from e

        return TokenClaims(claims, email_namespace=self.config.email_claim_namespace)


# Global client instance
_jwks_client: Optional[Auth0JWKSClient] = None


def get_jwks_client() -> Auth0JWKSClient:
    """Get the process-wide JWKS client."""
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = Auth0JWKSClient()
    return _jwks_client
