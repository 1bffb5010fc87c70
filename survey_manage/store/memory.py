from __future__ import annotations
from copy import deepcopy
from typing import Any, Dict, List, Mapping, Optional, Tuple
import re
import threading

from ..query import OR_KEY

_OPS = {"NOT_EQUAL", "REGEX_MATCH"}
_MISSING = object()


class InvalidQueryError(ValueError):
    """The predicate cannot be evaluated (e.g. a bad regular expression)."""


def _get_path(doc: Mapping[str, Any], path: str) -> Any:
    """
    Resolve a dotted path like 'curStatus.status'. Returns _MISSING if absent.
    """
    cur: Any = doc
    for part in path.split("."):
        if not isinstance(cur, Mapping) or part not in cur:
            return _MISSING
        cur = cur[part]
    return cur


def _is_fragment(expected: Any) -> bool:
    return isinstance(expected, Mapping) and set(expected.keys()) == {"op", "value"} and expected["op"] in _OPS


def _regex(pattern: Any) -> "re.Pattern[str]":
    try:
        return re.compile(str(pattern))
    except re.error as e:
        raise InvalidQueryError(f"bad regular expression {pattern!r}: {e}") from e


def _match_value(actual: Any, expected: Any) -> bool:
    if _is_fragment(expected):
        op, value = expected["op"], expected["value"]
        if op == "NOT_EQUAL":
            return actual is _MISSING or actual != value
        # REGEX_MATCH
        if actual is _MISSING or actual is None:
            return False
        return _regex(value).search(str(actual)) is not None
    if isinstance(expected, Mapping):
        # nested predicate over a sub-document
        return isinstance(actual, Mapping) and matches(actual, expected)
    if actual is _MISSING:
        return expected is None
    return actual == expected


def matches(doc: Mapping[str, Any], predicate: Mapping[str, Any]) -> bool:
    """
    Evaluate a compiled predicate against one document. Top-level keys are
    ANDed; the OR key holds alternatives of which at least one must match.
    """
    for key, expected in predicate.items():
        if key == OR_KEY:
            if not any(matches(doc, branch) for branch in expected):
                return False
            continue
        if not _match_value(_get_path(doc, key), expected):
            return False
    return True


def _sort_docs(docs: List[Dict[str, Any]], sort: Mapping[str, int]) -> List[Dict[str, Any]]:
    # Stable sorts applied from the least significant key up.
    out = list(docs)
    for path, direction in reversed(list(sort.items())):
        def key(d: Dict[str, Any], path: str = path) -> Tuple[int, Any]:
            v = _get_path(d, path)
            if v is _MISSING or v is None:
                return (0, 0)
            return (1, v)
        out.sort(key=key, reverse=direction == -1)
    return out


class DocumentStore:
    """
    Thread-safe in-memory collections of dict documents keyed by `_id`.
    Documents are copied on the way in and out.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _col(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def insert(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        if "_id" not in doc:
            raise ValueError("document requires an _id")
        with self._lock:
            self._col(collection)[doc["_id"]] = deepcopy(doc)
        return deepcopy(doc)

    def find_one(self, collection: str, predicate: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            for doc in self._col(collection).values():
                if matches(doc, predicate):
                    return deepcopy(doc)
        return None

    def update(self, collection: str, doc_id: str, changes: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Shallow-merge `changes` into the document. Returns the updated copy or None.
        """
        with self._lock:
            doc = self._col(collection).get(doc_id)
            if doc is None:
                return None
            doc.update(deepcopy(dict(changes)))
            return deepcopy(doc)

    def find(
        self,
        collection: str,
        predicate: Mapping[str, Any],
        sort: Optional[Mapping[str, int]] = None,
        page_num: int = 1,
        page_size: int = 0,
        *,
        scope: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[int, List[Dict[str, Any]]]:
        """
        Returns (total_matching, page). page_size <= 0 returns everything.
        `scope` is a second predicate every hit must also satisfy.
        """
        with self._lock:
            hits = [
                d for d in self._col(collection).values()
                if (scope is None or matches(d, scope)) and matches(d, predicate)
            ]
            hits = _sort_docs(hits, sort or {})
            total = len(hits)
            if page_size and page_size > 0:
                start = max(page_num - 1, 0) * page_size
                hits = hits[start:start + page_size]
            return total, deepcopy(hits)

    def clear(self) -> None:
        with self._lock:
            self._collections.clear()
