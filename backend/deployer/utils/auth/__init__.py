"""
Authentication Utilities
"""

from .dependencies import get_current_user_id
from .jwt_utils import JWTUtils

__all__ = [
    "get_current_user_id",
    "JWTUtils",
]
