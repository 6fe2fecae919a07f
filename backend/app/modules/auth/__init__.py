# Authentication module

from app.modules.auth.dependencies import (
    get_current_user,
    get_current_admin,
    get_optional_user,
    enforce_maintenance_mode,
    get_request_info,
)

__all__ = [
    "get_current_user",
    "get_current_admin",
    "get_optional_user",
    "enforce_maintenance_mode",
    "get_request_info",
]
