"""
Authentication Dependencies

FastAPI dependency resolving the authenticated principal from the bearer token
"""

import logging
from typing import Optional

import jwt
from fastapi import Header, HTTPException, status

from deployer.utils.auth.jwt_utils import JWTUtils

logger = logging.getLogger(__name__)


async def get_current_user_id(
    authorization: Optional[str] = Header(None, description="Bearer token")
) -> str:
    """
    Extract user ID from the JWT in the Authorization header

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )

    token = authorization[7:] if authorization.startswith("Bearer ") else authorization

    try:
        user_id = JWTUtils.extract_user_id(token)
    except (jwt.InvalidTokenError, ValueError) as e:
        logger.warning(f"Token validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid or expired token: {str(e)}"
        )

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: could not extract user ID"
        )
    return user_id
