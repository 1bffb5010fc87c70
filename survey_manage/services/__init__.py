"""
Service layer for the survey manage service.

Surveys, history snapshots and caller identity.
"""

from .user import UserData, UserService
from .history import HistoryType, SurveyHistoryService
from .survey import SurveyService, SurveyStatus

__all__ = [
    "UserData",
    "UserService",
    "HistoryType",
    "SurveyHistoryService",
    "SurveyService",
    "SurveyStatus",
]
