from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from urllib.parse import unquote
import json

from jsonschema import Draft7Validator

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Comparator(str, Enum):
    NOT_EQUAL = "$ne"
    REGEX_MATCH = "$regex"


class Combinator(str, Enum):
    AND = "$and"
    OR = "$or"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class FilterFormatError(ValueError):
    """The filter parameter is not a valid filter list."""


class OrderFormatError(ValueError):
    """The order parameter is not a valid sort list."""


# ---------------------------------------------------------------------------
# Core filter models
# ---------------------------------------------------------------------------

@dataclass
class FilterCondition:
    """
    One leaf comparison: a field, an optional comparator and a value.

    `comparator` keeps the raw wire string so unknown operators survive
    decoding and can be dropped by the compiler.
    """
    field: str
    comparator: Optional[str] = None
    value: Union[str, int, float, bool, None, List["FilterItem"]] = None

    @property
    def nested(self) -> bool:
        return isinstance(self.value, list)

    # camelCase JSON helpers
    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"field": self.field}
        if self.comparator is not None:
            out["comparator"] = self.comparator
        out["value"] = [i.to_dict() for i in self.value] if self.nested else self.value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterCondition":
        raw = data.get("value")
        value = [FilterItem.from_dict(i) for i in raw] if isinstance(raw, list) else raw
        return cls(
            field=data["field"],
            comparator=data.get("comparator"),
            value=value,
        )


@dataclass
class FilterItem:
    """
    A group of sibling conditions (implicitly ANDed) plus the combinator
    deciding how the group joins the rest of the filter.
    """
    combinator: Combinator = Combinator.AND
    condition: List[FilterCondition] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"condition": [c.to_dict() for c in self.condition]}
        if self.combinator is Combinator.OR:
            out["comparator"] = self.combinator.value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterItem":
        # anything other than "$or" merges with AND
        combinator = Combinator.OR if data.get("comparator") == Combinator.OR.value else Combinator.AND
        return cls(
            combinator=combinator,
            condition=[FilterCondition.from_dict(c) for c in data.get("condition", [])],
        )


@dataclass
class SortRequest:
    """
    One sort key. `direction` is the raw wire `value`; only exactly 1 means ascending.
    """
    field: str
    direction: Any = None

    @property
    def ascending(self) -> bool:
        d = self.direction
        return not isinstance(d, bool) and isinstance(d, (int, float)) and d == 1

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "value": self.direction}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SortRequest":
        return cls(field=data["field"], direction=data.get("value"))


# ---------------------------------------------------------------------------
# JSON Schemas
# ---------------------------------------------------------------------------

FILTER_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "$id": "https://survey-manage/filter.schema.json",
    "title": "Filter List",
    "definitions": {
        "FilterCondition": {
            "type": "object",
            "properties": {
                "field": {"type": "string"},
                "comparator": {"type": "string"},
                "value": {
                    "oneOf": [
                        {"type": "string"},
                        {"type": "number"},
                        {"type": "boolean"},
                        {"type": "null"},
                        {"type": "array", "items": {"$ref": "#/definitions/FilterItem"}},
                    ]
                },
            },
            "required": ["field"],
        },
        "FilterItem": {
            "type": "object",
            "properties": {
                "comparator": {"type": "string"},
                "condition": {"type": "array", "items": {"$ref": "#/definitions/FilterCondition"}},
            },
            "required": ["condition"],
        },
    },
    "type": "array",
    "items": {"$ref": "#/definitions/FilterItem"},
}

ORDER_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "$id": "https://survey-manage/order.schema.json",
    "title": "Order List",
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "field": {"type": "string"},
            "value": {},
        },
        "required": ["field"],
    },
}

_FILTER_VALIDATOR = Draft7Validator(FILTER_SCHEMA)
_ORDER_VALIDATOR = Draft7Validator(ORDER_SCHEMA)


def _first_error(validator: Draft7Validator, instance: Any) -> Optional[str]:
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if not errors:
        return None
    e = errors[0]
    where = "/".join(str(p) for p in e.path) or "<root>"
    return f"{where}: {e.message}"


def decode_query_param(raw: str) -> Any:
    """
    Percent-decode a query-string value and parse it as JSON.
    """
    return json.loads(unquote(raw))


def parse_filter_json(payload: Union[str, List[Any]]) -> List[FilterItem]:
    """
    Accept a (possibly percent-encoded) JSON string or a parsed list and
    return typed FilterItems. Raises FilterFormatError on any shape problem.
    """
    try:
        data = decode_query_param(payload) if isinstance(payload, str) else payload
    except (ValueError, TypeError) as e:
        raise FilterFormatError(f"filter is not valid JSON: {e}") from e
    except RecursionError as e:
        raise FilterFormatError("filter is nested too deeply") from e
    try:
        problem = _first_error(_FILTER_VALIDATOR, data)
        if problem:
            raise FilterFormatError(problem)
        return [FilterItem.from_dict(i) for i in data]
    except RecursionError as e:
        raise FilterFormatError("filter is nested too deeply") from e


def parse_order_json(payload: Union[str, List[Any]]) -> List[SortRequest]:
    """
    Same as parse_filter_json, for the order parameter.
    """
    try:
        data = decode_query_param(payload) if isinstance(payload, str) else payload
    except (ValueError, TypeError) as e:
        raise OrderFormatError(f"order is not valid JSON: {e}") from e
    problem = _first_error(_ORDER_VALIDATOR, data)
    if problem:
        raise OrderFormatError(problem)
    return [SortRequest.from_dict(i) for i in data]


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
