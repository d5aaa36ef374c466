"""
X-API-Key check for the management API.

Read once at import from Settings (API_AUTH_ENABLED, API_KEY). When
disabled, every request passes; /health is never guarded.
"""

import hmac
import logging
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from message_scheduler.infra.config import Settings

logger = logging.getLogger(__name__)

_settings = Settings.from_env()
API_AUTH_ENABLED = _settings.api_auth_enabled
API_KEY = _settings.api_key

if API_AUTH_ENABLED and not API_KEY:
    logger.warning("API_AUTH_ENABLED is set but API_KEY is empty; every request will be rejected")

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,
    description="Required on /numbers, /schedules and /scheduler when API_AUTH_ENABLED=true",
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "ApiKey"},
    )


async def verify_api_key(
    api_key: Optional[str] = Security(api_key_header),
) -> Optional[str]:
    """
    Reject requests without the configured API key.

    Returns:
        The accepted key, or None when auth is disabled

    Raises:
        HTTPException: 401 if the header is missing or does not match
    """
    if not API_AUTH_ENABLED:
        return None

    if not api_key:
        raise _unauthorized("Missing API key. Provide X-API-Key header.")

    if not API_KEY or not hmac.compare_digest(api_key.encode(), API_KEY.encode()):
        logger.warning("Rejected request with invalid API key")
        raise _unauthorized("Invalid API key")

    return api_key
