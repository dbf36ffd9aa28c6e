"""
Authentication and viewer identity.

Two independent concerns:
1. API key guard - when AUTH_API_KEY is set, every request must carry a
   matching X-API-Key header. Without it configured, all requests pass
   (local development).
2. Viewer identity - X-User-Id marks a signed-in reader, X-Anon-Session-Id
   an anonymous browser session. The user wins when both are sent.
"""

import secrets

from fastapi import Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from .config import config
from .identity import Identity, resolve_identity

# Header name for the API key
API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


def verify_api_key(api_key: str | None = Security(API_KEY_HEADER)) -> str:
    """
    Verify the API key from request headers.

    Args:
        api_key: The API key from the X-API-Key header

    Returns:
        The validated API key, or "" when auth is disabled

    Raises:
        HTTPException: If authentication is enabled and the key is missing or invalid
    """
    configured_key = config.AUTH_API_KEY

    # If no auth key is configured, skip authentication (local dev mode)
    if not configured_key:
        return ""

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    # Constant-time comparison
    if not secrets.compare_digest(api_key, configured_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


def get_viewer(
    x_user_id: str | None = Header(default=None),
    x_anon_session_id: str | None = Header(default=None),
) -> Identity | None:
    """Dependency resolving the viewer from identity headers (None if absent)."""
    return resolve_identity(x_user_id, x_anon_session_id)
