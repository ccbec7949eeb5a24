"""Client for the Auth0 Management API (user provisioning for invites)."""

import logging
import secrets
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from admin_api.config import Auth0Settings, PortalSettings, get_settings
from admin_api.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def random_temp_password() -> str:
    """Throwaway password for new users; they set their own through a ticket."""
    return f"Tmp-{secrets.token_hex(18)}!aA1"


class Auth0ManagementClient:
    """
    Minimal Management API client.

    Obtains a token with the client-credentials grant, then looks up or
    creates database-connection users and issues password-change tickets.
    """

    def __init__(
        self,
        settings: Optional[Auth0Settings] = None,
        portal: Optional[PortalSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15.0,
    ):
        app_settings = get_settings() if settings is None or portal is None else None
        self.settings = settings or app_settings.auth0
        self.portal = portal or app_settings.portal
        self._transport = transport
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return f"https://{self.settings.domain}"

    def _require_configured(self) -> None:
        if not self.settings.is_management_configured:
            raise ExternalServiceError(
                "auth0",
                message=(
                    "Auth0 Management API not configured "
                    "(AUTH0_DOMAIN, AUTH0_MGMT_CLIENT_ID, AUTH0_MGMT_CLIENT_SECRET required)"
                ),
                status_code=503,
            )

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        token: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = await client.request(method, url, json=json, headers=headers)
        except httpx.RequestError as e:
            raise ExternalServiceError("auth0", message="Auth0 unreachable", detail=str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = None
            if isinstance(body, dict):
                message = body.get("message") or body.get("error_description") or body.get("error")
            message = message or f"Auth0 request failed ({response.status_code})"
            raise ExternalServiceError("auth0", message=message, detail=message)
        return body

    async def _get_token(self, client: httpx.AsyncClient) -> str:
        body = await self._request(
            client,
            "POST",
            "/oauth/token",
            json={
                "grant_type": "client_credentials",
                "client_id": self.settings.mgmt_client_id,
                "client_secret": self.settings.mgmt_client_secret,
                "audience": f"{self.base_url}/api/v2/",
            },
        )
        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise ExternalServiceError("auth0", message="Failed to get Auth0 management token")
        return token

    async def get_or_create_user_by_email(self, email: str) -> Dict[str, Any]:
        """Return the Auth0 user for an email, creating it in the DB connection if absent."""
        self._require_configured()
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            token = await self._get_token(client)

            users = await self._request(
                client, "GET", f"/api/v2/users-by-email?email={quote(email, safe='')}", token=token
            )
            if isinstance(users, list) and users:
                return users[0]

            user = await self._request(
                client,
                "POST",
                "/api/v2/users",
                token=token,
                json={
                    "connection": self.settings.db_connection,
                    "email": email,
                    "password": random_temp_password(),
                    "email_verified": False,
                    "verify_email": False,
                },
            )
            logger.info(f"Created Auth0 user {user.get('user_id')} for invited staff")
            return user

    async def create_password_change_ticket(self, auth0_user_id: str) -> str:
        """Create a password-change ticket and return its URL."""
        self._require_configured()
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            token = await self._get_token(client)
            body = await self._request(
                client,
                "POST",
                "/api/v2/tickets/password-change",
                token=token,
                json={
                    "user_id": auth0_user_id,
                    "result_url": self.portal.admin_app_url,
                    "ttl_sec": self.portal.password_ticket_ttl_sec,
                    "mark_email_as_verified": False,
                },
            )
        ticket = body.get("ticket") if isinstance(body, dict) else None
        if not ticket:
            raise ExternalServiceError("auth0", message="Auth0 did not return a password-change ticket")
        return ticket


def get_auth0_management_client() -> Auth0ManagementClient:
    """FastAPI dependency for the Management API client."""
    return Auth0ManagementClient()
