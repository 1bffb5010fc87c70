"""
Authentication module for the survey manage service.

This module provides the bearer-token FastAPI dependency.
"""

from .require import require_auth

__all__ = [
    "require_auth",
]
