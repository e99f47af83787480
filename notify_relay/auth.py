"""
Bearer-key gate in front of the relay routes
"""
from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from typing import Optional
import logging
import secrets

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def make_api_key_verifier(expected_api_key: Optional[str]):
    """
    Build a dependency that checks the 'Authorization: Bearer <key>' header

    Args:
        expected_api_key: Key callers must present; None disables the check

    Returns:
        An async FastAPI dependency
    """

    async def verify_api_key(
        credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    ) -> str:
        # If no API key is configured, allow all requests
        if not expected_api_key:
            return "disabled"

        if credentials is None or not credentials.credentials:
            logger.warning("Request received without bearer token")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing API key. Include 'Authorization: Bearer <key>' header with your request.",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not secrets.compare_digest(credentials.credentials, expected_api_key):
            logger.warning("Invalid API key attempt")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid API key",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return credentials.credentials

    return verify_api_key
