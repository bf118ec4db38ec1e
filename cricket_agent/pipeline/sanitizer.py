"""
Query Sanitizer

The single boundary between untrusted query candidates (LLM or fallback
output) and the store. Allowlist-based and total: whatever comes in, a
``SanitizedQuerySpec`` comes out. New queryable fields must be added to
``ALLOWED_FIELDS`` explicitly.
"""

import logging
import math
import re
from typing import Any, Dict, Mapping, Optional

from ..common.schemas import QueryKind, QuerySpec, SanitizedQuerySpec

logger = logging.getLogger("cricket_agent.pipeline.sanitizer")

ALLOWED_FIELDS = frozenset({
    "name", "country", "format", "runs", "average", "strikeRate",
    "matches", "innings", "centuries", "fifties", "ducks",
})
ALLOWED_FORMATS = frozenset({"test", "odi", "t20"})
TEXT_FIELDS = frozenset({"name", "country"})

REGEX_KEYS = frozenset({"$regex", "$options"})
REGEX_FLAGS = "imsx"
MAX_PATTERN_LENGTH = 100

COMPARISON_OPERATORS = frozenset({"$eq", "$ne", "$gt", "$gte", "$lt", "$lte"})
LIST_OPERATORS = frozenset({"$in", "$nin"})

MIN_LIMIT = 1
MAX_LIMIT = 50

_PRIMITIVES = (str, int, float, bool)


def _is_primitive(value: Any) -> bool:
    return isinstance(value, _PRIMITIVES)


def _sanitize_kind(kind: Any) -> QueryKind:
    return QueryKind.FIND_ONE if kind == QueryKind.FIND_ONE.value else QueryKind.FIND


def _sanitize_format(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    return normalized if normalized in ALLOWED_FORMATS else None


def _sanitize_text(value: Any) -> Optional[Any]:
    """Plain value, or a regex object with only a pattern and flags"""
    if _is_primitive(value):
        return value
    if not isinstance(value, Mapping) or not value or not set(value) <= REGEX_KEYS:
        return None

    pattern = value.get("$regex")
    if not isinstance(pattern, str) or not pattern or len(pattern) > MAX_PATTERN_LENGTH:
        return None
    try:
        re.compile(pattern)
    except re.error:
        return None

    regex = {"$regex": pattern}
    options = value.get("$options")
    if isinstance(options, str):
        flags = "".join(dict.fromkeys(c for c in options if c in REGEX_FLAGS))
        if flags:
            regex["$options"] = flags
    return regex


def _sanitize_stat(value: Any) -> Optional[Any]:
    """Plain value, or comparison operators over plain values"""
    if _is_primitive(value):
        return value
    if not isinstance(value, Mapping) or not value:
        return None

    clean = {}
    for op, operand in value.items():
        if op in COMPARISON_OPERATORS and _is_primitive(operand):
            clean[op] = operand
        elif op in LIST_OPERATORS and isinstance(operand, list) and all(_is_primitive(v) for v in operand):
            clean[op] = list(operand)
        else:
            return None
    return clean


def _sanitize_filter(raw_filter: Any) -> Dict[str, Any]:
    if not isinstance(raw_filter, Mapping):
        return {}

    clean: Dict[str, Any] = {}
    for key, value in raw_filter.items():
        if key not in ALLOWED_FIELDS:
            logger.info("Dropping non-allowlisted filter key %r", key)
            continue
        if key == "format":
            sanitized = _sanitize_format(value)
        elif key in TEXT_FIELDS:
            sanitized = _sanitize_text(value)
        else:
            sanitized = _sanitize_stat(value)

        if sanitized is None:
            logger.info("Dropping filter %r with unsupported value", key)
            continue
        clean[key] = sanitized
    return clean


def _sanitize_sort(raw_sort: Any) -> Optional[Dict[str, int]]:
    if not isinstance(raw_sort, Mapping):
        return None
    clean = {}
    for key, direction in raw_sort.items():
        if key not in ALLOWED_FIELDS:
            continue
        clean[key] = 1 if direction == 1 and not isinstance(direction, bool) else -1
    return clean or None


def _sanitize_limit(raw_limit: Any, min_limit: int, max_limit: int) -> Optional[int]:
    if raw_limit is None or isinstance(raw_limit, bool):
        return None
    if isinstance(raw_limit, int):
        # ints beyond float range would overflow float()
        return min(max(raw_limit, min_limit), max_limit)
    try:
        number = float(raw_limit)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return int(min(max(number, min_limit), max_limit))


def sanitize(
    candidate: Any,
    *,
    min_limit: int = MIN_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> SanitizedQuerySpec:
    """
    Validate an untrusted query candidate.

    Args:
        candidate: QuerySpec, parsed LLM JSON, or anything else
        min_limit: Lower clamp for the result limit
        max_limit: Upper clamp for the result limit

    Returns:
        SanitizedQuerySpec whose filter/sort keys are all allowlisted and whose
        limit is within [min_limit, max_limit] or None
    """
    spec = QuerySpec.from_raw(candidate)
    return SanitizedQuerySpec(
        kind=_sanitize_kind(spec.kind),
        filter=_sanitize_filter(spec.filter),
        sort=_sanitize_sort(spec.sort),
        limit=_sanitize_limit(spec.limit, min_limit, max_limit),
    )
