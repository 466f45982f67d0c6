"""API authentication using bearer API keys"""
import logging
import secrets
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from gymtrainer import config
from gymtrainer.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# Missing headers are reported as AuthenticationError, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def mask_key(api_key: str) -> str:
    """First four characters of a key, for logs"""
    return f"{api_key[:4]}..." if len(api_key) > 4 else "***"


def get_api_keys() -> list[str]:
    """Configured API keys (API_KEYS, comma separated)"""
    return config.API_KEYS


def is_valid_key(api_key: str, valid_keys: list[str]) -> bool:
    # Compares against every key so timing does not reveal a partial match
    matched = False
    for key in valid_keys:
        if secrets.compare_digest(api_key.encode(), key.encode()):
            matched = True
    return matched


async def verify_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """
    Check the bearer key on a points-engine request

    Returns:
        The verified API key

    Raises:
        HTTPException: 503 when the service has no keys configured
        AuthenticationError: header missing or key unknown (401)
    """
    valid_keys = get_api_keys()
    if not valid_keys:
        logger.error("No API_KEYS configured, rejecting all requests")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API authentication not configured"
        )

    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer API key", operation="verify_api_key")

    api_key = credentials.credentials
    if not is_valid_key(api_key, valid_keys):
        raise AuthenticationError(
            f"Invalid API key {mask_key(api_key)}",
            operation="verify_api_key"
        )

    logger.debug(f"API key validated: {mask_key(api_key)}")
    return api_key
