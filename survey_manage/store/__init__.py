"""
Document persistence for the survey manage service.

This module executes compiled predicates and sort specs against stored documents.
"""

from .memory import (
    DocumentStore,
    InvalidQueryError,
    matches,
)

__all__ = [
    "DocumentStore",
    "InvalidQueryError",
    "matches",
]
