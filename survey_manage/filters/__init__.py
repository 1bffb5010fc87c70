"""
Filter system for the survey manage service.

This module provides filter/sort request models, parsing, and validation.
"""

from .models import (
    Comparator,
    Combinator,
    FilterCondition,
    FilterItem,
    SortRequest,
    FilterFormatError,
    OrderFormatError,
    FILTER_SCHEMA,
    ORDER_SCHEMA,
    decode_query_param,
    parse_filter_json,
    parse_order_json,
)

__all__ = [
    "Comparator",
    "Combinator",
    "FilterCondition",
    "FilterItem",
    "SortRequest",
    "FilterFormatError",
    "OrderFormatError",
    "FILTER_SCHEMA",
    "ORDER_SCHEMA",
    "decode_query_param",
    "parse_filter_json",
    "parse_order_json",
]
