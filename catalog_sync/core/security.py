"""
Admin API Key Authentication

Admin endpoints (sync triggers, settings, moderation, scheduler control)
are guarded by a shared key sent in the X-API-Key header. User-facing
authentication is handled upstream and is not part of this service.
"""

import secrets
from typing import Optional

from fastapi import Header

from ..config import get_settings
from .exceptions import UnauthorizedError
from .logging import get_logger

logger = get_logger(__name__)


async def verify_admin_access(
    x_api_key: Optional[str] = Header(None),
) -> dict:
    """
    Verify admin access via the X-API-Key header.

    Raises:
        UnauthorizedError if the key is missing, wrong, or no key is configured
    """
    expected = get_settings().admin_api_key

    if not expected:
        logger.warning("admin_api_key_not_set")
        raise UnauthorizedError("Admin access is not configured")

    if x_api_key and secrets.compare_digest(x_api_key, expected):
        return {"method": "api_key", "uid": "admin"}

    raise UnauthorizedError("Missing or invalid X-API-Key header")
