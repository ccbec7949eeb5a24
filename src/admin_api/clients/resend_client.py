"""Client for the Resend transactional email API."""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from admin_api.config import ResendSettings, get_settings
from admin_api.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class ResendClient:
    """
    Sends email through Resend's ``POST /emails`` endpoint.

    Raises ``ExternalServiceError`` when the client is not configured or the
    provider rejects the request.
    """

    def __init__(
        self,
        settings: Optional[ResendSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            settings: Resend settings (defaults to the process settings)
            transport: Optional httpx transport, used by tests
        """
        self.settings = settings or get_settings().resend
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    async def send_email(
        self,
        to: Union[str, List[str]],
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send one email.

        Returns:
            Provider response, including the message ``id``
        """
        if not self.is_configured:
            raise ExternalServiceError(
                "resend",
                message="Resend not configured (missing RESEND_API_KEY or RESEND_FROM)",
                status_code=503,
            )

        payload: Dict[str, Any] = {
            "from": self.settings.from_email,
            "to": to if isinstance(to, list) else [to],
            "subject": subject,
        }
        if text:
            payload["text"] = text
        if html:
            payload["html"] = html

        url = f"{self.settings.api_url.rstrip('/')}/emails"
        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }

        logger.debug(f"POST {url}")
        try:
            async with httpx.AsyncClient(timeout=self.settings.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error(f"Resend send failed ({e.response.status_code}): {message}")
            raise ExternalServiceError("resend", message=f"Resend send failed: {message}", detail=message) from e
        except httpx.RequestError as e:
            logger.error(f"Resend request error: {e}")
            raise ExternalServiceError("resend", message="Resend unreachable", detail=str(e)) from e

        logger.info(f"Email sent via Resend: id={result.get('id')} subject={subject!r}")
        return result


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


def get_resend_client() -> ResendClient:
    """FastAPI dependency for the email client."""
    return ResendClient()
