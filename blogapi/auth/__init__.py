from .security import (
    verify_password,
    get_password_hash,
    verify_token,
    create_access_token,
)
from .dependencies import get_current_user, get_optional_user, require_role
from .models import Token, LoginRequest


__all__ = [
    "verify_password",
    "get_password_hash",
    "verify_token",
    "create_access_token",
    "get_current_user",
    "get_optional_user",
    "require_role",
    "Token",
    "LoginRequest",
]
