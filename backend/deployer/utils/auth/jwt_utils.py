"""
JWT Utilities

Issues and verifies the bearer tokens that carry the authenticated user ID.
Token issuance happens after the OAuth exchange, outside this service.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import jwt

from deployer.config.settings import JWTConfig


class JWTUtils:
    """JWT encode/decode helpers"""

    @staticmethod
    def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None, **claims) -> str:
        """
        Create a signed access token for ``user_id``

        Args:
            user_id: Stable user identifier
            expires_delta: Token lifetime, defaults to 7 days
            **claims: Extra claims (email, provider, username)

        Returns:
            Encoded JWT string
        """
        if not JWTConfig.SECRET_KEY:
            raise ValueError("JWT secret key is not configured")
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=7))
        payload = {JWTConfig.USER_ID_CLAIM: user_id, "exp": expire, **claims}
        return jwt.encode(payload, JWTConfig.SECRET_KEY, algorithm=JWTConfig.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """
        Decode and verify a token

        Raises:
            jwt.InvalidTokenError: signature, expiry or format problems
            ValueError: when no secret key is configured
        """
        if not JWTConfig.SECRET_KEY:
            raise ValueError("JWT secret key is not configured")
        return jwt.decode(token, JWTConfig.SECRET_KEY, algorithms=[JWTConfig.ALGORITHM])

    @staticmethod
    def extract_user_id(token: str) -> Optional[str]:
        """Return the user ID claim of a verified token"""
        payload = JWTUtils.decode_token(token)
        user_id = payload.get(JWTConfig.USER_ID_CLAIM)
        return str(user_id) if user_id else None
