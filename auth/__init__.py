from .utils import (
    authenticate_admin,
    create_access_token,
    get_current_active_admin,
    get_password_hash,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    verify_password,
    get_current_admin
)

__all__ = [
    "authenticate_admin",
    "create_access_token",
    "get_current_active_admin",
    "get_password_hash",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
    "verify_password",
    "get_current_admin"
]
