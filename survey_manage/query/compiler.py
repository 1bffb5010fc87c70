from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Sequence
import logging
import os

from ..filters import Combinator, Comparator, FilterCondition, FilterItem, SortRequest

log = logging.getLogger("query")

# Queryable / sortable fields. These are a security control: anything not
# listed here never reaches the store.
SURVEY_FILTER_FIELDS: FrozenSet[str] = frozenset({"title", "remark", "questionType", "curStatus.status"})
SURVEY_SORT_FIELDS: FrozenSet[str] = frozenset({"createDate", "updateDate", "curStatus.date"})

OR_KEY = "OR"

FILTER_MAX_DEPTH = int(os.getenv("FILTER_MAX_DEPTH", "8"))
FILTER_MAX_CONDITIONS = int(os.getenv("FILTER_MAX_CONDITIONS", "200"))


class FilterLimitError(ValueError):
    """The filter tree is nested too deeply or holds too many conditions."""


class DuplicateFieldError(ValueError):
    """Strict mode: one filter item names the same field twice."""


@dataclass(frozen=True)
class CompilerLimits:
    max_depth: int = FILTER_MAX_DEPTH
    max_conditions: int = FILTER_MAX_CONDITIONS


def _fragment(comparator: Comparator, value: Any) -> Dict[str, Any]:
    return {"op": comparator.name, "value": value}


class QueryExpressionCompiler:
    """
    Compiles client filter trees and sort lists into store predicates.

    Output shape:
      - predicate: {field: value | {"op": "NOT_EQUAL"|"REGEX_MATCH", "value": v}
                    | nested predicate, "OR": [predicate, ...]}
      - sort spec: {field: 1 | -1}

    Duplicate fields are last-write-wins, both inside one item and across
    AND-merged items. With strict=True a duplicate inside one item raises
    DuplicateFieldError instead.
    """

    def __init__(
        self,
        filter_fields: FrozenSet[str] = SURVEY_FILTER_FIELDS,
        sort_fields: FrozenSet[str] = SURVEY_SORT_FIELDS,
        *,
        limits: Optional[CompilerLimits] = None,
        strict: bool = False,
    ):
        self.filter_fields = frozenset(filter_fields)
        self.sort_fields = frozenset(sort_fields)
        self.limits = limits or CompilerLimits()
        self.strict = strict

    # -----------------------------------------------------------------------
    # Filter
    # -----------------------------------------------------------------------

    def compile_filter(self, items: Sequence[FilterItem]) -> Dict[str, Any]:
        self._check_limits(items)
        return self._fold(items)

    def _check_limits(self, items: Sequence[FilterItem]) -> None:
        # Iterative walk so adversarial depth can't blow the stack before we reject it.
        count = 0
        stack = [(items, 1)]
        while stack:
            group, depth = stack.pop()
            if depth > self.limits.max_depth:
                raise FilterLimitError(f"filter nesting exceeds {self.limits.max_depth} levels")
            for item in group:
                for cond in item.condition:
                    count += 1
                    if count > self.limits.max_conditions:
                        raise FilterLimitError(
                            f"filter has more than {self.limits.max_conditions} conditions"
                        )
                    if cond.nested:
                        stack.append((cond.value, depth + 1))

    def _fold(self, items: Sequence[FilterItem]) -> Dict[str, Any]:
        acc: Dict[str, Any] = {}
        for item in items:
            sub = self._compile_conditions(item.condition)
            if item.combinator is Combinator.OR:
                acc.setdefault(OR_KEY, []).append(sub)
            else:
                acc.update(sub)
        return acc

    def _compile_conditions(self, conditions: Sequence[FilterCondition]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for cond in conditions:
            if cond.field not in self.filter_fields:
                log.debug("dropping filter on non-queryable field %r", cond.field)
                continue

            value = self._fold(cond.value) if cond.nested else cond.value
            if cond.comparator is None:
                compiled = value
            else:
                try:
                    compiled = _fragment(Comparator(cond.comparator), value)
                except ValueError:
                    log.debug("dropping filter with unknown comparator %r", cond.comparator)
                    continue

            if self.strict and cond.field in out:
                raise DuplicateFieldError(f"field {cond.field!r} appears more than once in one filter item")
            out[cond.field] = compiled
        return out

    # -----------------------------------------------------------------------
    # Order
    # -----------------------------------------------------------------------

    def compile_order(self, items: Sequence[SortRequest]) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for s in items:
            if s.field not in self.sort_fields:
                log.debug("dropping sort on non-sortable field %r", s.field)
                continue
            out[s.field] = 1 if s.ascending else -1
        return out


__all__ = [
    "SURVEY_FILTER_FIELDS",
    "SURVEY_SORT_FIELDS",
    "OR_KEY",
    "CompilerLimits",
    "FilterLimitError",
    "DuplicateFieldError",
    "QueryExpressionCompiler",
]
