"""Clients for external services."""

from admin_api.clients.auth0_management import Auth0ManagementClient
from admin_api.clients.resend_client import ResendClient

__all__ = ["Auth0ManagementClient", "ResendClient"]
