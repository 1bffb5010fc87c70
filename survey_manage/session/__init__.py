"""
Session management for the survey manage service.

This module handles JWT token creation, validation, and refresh logic.
"""

from .jwt import (
    COOKIE_NAME,
    issue_tokens,
    verify_access,
    verify_refresh,
    set_refresh_cookie,
    clear_refresh_cookie,
)

__all__ = [
    "COOKIE_NAME",
    "issue_tokens",
    "verify_access",
    "verify_refresh",
    "set_refresh_cookie",
    "clear_refresh_cookie",
]
