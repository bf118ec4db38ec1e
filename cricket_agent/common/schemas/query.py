"""
Query shapes.

``QuerySpec`` is what the LLM or the fallback synthesizer produce: untrusted,
loosely typed. ``SanitizedQuerySpec`` is only ever built by the sanitizer and
is the only shape the executor accepts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class QueryKind(str, Enum):
    FIND = "find"
    FIND_ONE = "findOne"


@dataclass
class QuerySpec:
    """Untrusted query candidate"""
    kind: Any = QueryKind.FIND.value
    filter: Any = field(default_factory=dict)
    sort: Any = None
    limit: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> "QuerySpec":
        """Decode any value (typically parsed LLM JSON) into a candidate.

        Never fails: non-mapping input becomes an empty candidate.
        """
        if isinstance(raw, QuerySpec):
            return raw
        if not isinstance(raw, Mapping):
            return cls()
        return cls(
            kind=raw.get("type", raw.get("kind", QueryKind.FIND.value)),
            filter=raw.get("filter"),
            sort=raw.get("sort"),
            limit=raw.get("limit"),
        )

    def to_dict(self) -> Dict[str, Any]:
        kind = self.kind.value if isinstance(self.kind, QueryKind) else self.kind
        return {"type": kind, "filter": self.filter, "sort": self.sort, "limit": self.limit}


@dataclass(frozen=True)
class SanitizedQuerySpec:
    """Allowlist-validated query, safe to hand to the store"""
    kind: QueryKind
    filter: Dict[str, Any]
    sort: Optional[Dict[str, int]] = None
    limit: Optional[int] = None

    @property
    def is_find_one(self) -> bool:
        return self.kind == QueryKind.FIND_ONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "filter": dict(self.filter),
            "sort": dict(self.sort) if self.sort else None,
            "limit": self.limit,
        }
