"""
Query compilation module for the survey manage service.

This module turns client filter/sort lists into store predicates.
"""

from .compiler import (
    SURVEY_FILTER_FIELDS,
    SURVEY_SORT_FIELDS,
    OR_KEY,
    CompilerLimits,
    FilterLimitError,
    DuplicateFieldError,
    QueryExpressionCompiler,
)

__all__ = [
    "SURVEY_FILTER_FIELDS",
    "SURVEY_SORT_FIELDS",
    "OR_KEY",
    "CompilerLimits",
    "FilterLimitError",
    "DuplicateFieldError",
    "QueryExpressionCompiler",
]
