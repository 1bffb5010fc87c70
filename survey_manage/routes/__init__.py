"""
API routes for the survey manage service.
"""

from .auth_routes import router as auth_router
from .survey_routes import router as survey_router

__all__ = [
    "auth_router",
    "survey_router",
]
