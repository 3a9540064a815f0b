"""
Authentication module for API key validation.
Provides FastAPI dependencies for securing endpoints.

User authentication proper happens upstream; requests reach this service
with an API key that optionally names the acting user.
"""
from typing import List, Optional
import logging

from fastapi import Depends, HTTPException, Header

from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Owner used for keys that carry no user suffix
DEFAULT_API_USER = "admin"


def get_current_user(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Authenticate via API key.
    Returns user_id string.

    Usage:
        @app.get("/protected")
        def protected_route(user_id: str = Depends(get_current_user)):
            return {"user_id": user_id}
    """
    if not x_api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing authentication. Provide X-API-Key."
        )
    return validate_api_key(x_api_key, settings.api_keys_list)


def validate_api_key(api_key: str, valid_keys: List[str]) -> str:
    """
    Validate API key and return user_id.

    API key format options:
    - Simple: "sk_test_abc123" -> returns "admin"
    - With user: "sk_test_abc123:user_12345" -> returns "user_12345"
    """
    if not valid_keys:
        logger.warning("No API keys configured (API_KEYS env var empty)")
        raise HTTPException(status_code=401, detail="API key authentication not configured")

    key_part, _, user_id = api_key.partition(":")

    if key_part not in valid_keys:
        raise HTTPException(status_code=401, detail="Invalid API key")

    if user_id:
        return user_id

    return DEFAULT_API_USER
