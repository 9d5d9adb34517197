"""Microsoft Graph client setup for Teams meetings."""

import logging
import os
import time

import httpx

from ..config import get_external_call_timeout

logger = logging.getLogger(__name__)

GRAPH_AUTH_URL = "https://login.microsoftonline.com"
GRAPH_API_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"

# Refresh tokens this many seconds before Graph says they expire
TOKEN_EXPIRY_MARGIN_SECONDS = 60

_token: dict | None = None


def is_teams_configured() -> bool:
    """Check if Microsoft Graph credentials and an organizer are configured."""
    return all(
        os.environ.get(name)
        for name in (
            "MS_TENANT_ID",
            "MS_CLIENT_ID",
            "MS_CLIENT_SECRET",
            "MS_ORGANIZER_USER_ID",
        )
    )


def get_organizer_user_id() -> str:
    """User whose calendar owns every session meeting."""
    return os.environ["MS_ORGANIZER_USER_ID"]


def graph_client() -> httpx.AsyncClient:
    """HTTP client for Graph calls, bounded by the external call timeout."""
    return httpx.AsyncClient(timeout=get_external_call_timeout())


async def get_access_token(client: httpx.AsyncClient) -> str:
    """
    Get an app-only Graph token using the client credentials flow.

    Tokens are cached in-process until shortly before they expire.

    Raises:
        httpx.HTTPStatusError: if the token endpoint rejects the credentials
    """
    global _token

    if _token and _token["expires_at"] > time.monotonic():
        return _token["access_token"]

    tenant_id = os.environ["MS_TENANT_ID"]
    response = await client.post(
        f"{GRAPH_AUTH_URL}/{tenant_id}/oauth2/v2.0/token",
        data={
            "client_id": os.environ["MS_CLIENT_ID"],
            "client_secret": os.environ["MS_CLIENT_SECRET"],
            "scope": GRAPH_SCOPE,
            "grant_type": "client_credentials",
        },
    )
    response.raise_for_status()
    data = response.json()

    expires_in = int(data.get("expires_in", 3600))
    _token = {
        "access_token": data["access_token"],
        "expires_at": time.monotonic() + expires_in - TOKEN_EXPIRY_MARGIN_SECONDS,
    }
    return _token["access_token"]


def clear_token_cache() -> None:
    """Forget the cached token (used by tests and after credential rotation)."""
    global _token
    _token = None
