"""
Fallback Query Synthesizer

Deterministic keyword -> query mapping used whenever the LLM is not
configured or its output cannot be used. Pure: no I/O, never fails.

Rules are tried in order and the first match wins, so the most specific
rules (player + format) come before player-only and format-only rules.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..common.schemas import QueryKind, QuerySpec

DEFAULT_LIMIT = 5

# (substrings that identify the player, name regex sent to the store)
PLAYER_ALIASES: List[Tuple[Tuple[str, ...], str]] = [
    (("babar",), "Babar"),
    (("kohli", "virat"), "Kohli|Virat"),
    (("tendulkar", "sachin"), "Tendulkar"),
    (("rohit",), "Rohit"),
    (("joe root",), "Root"),
    (("steve smith", "steven smith"), "Smith"),
    (("williamson",), "Williamson"),
    (("dhoni",), "Dhoni"),
    (("ponting",), "Ponting"),
    (("sangakkara",), "Sangakkara"),
]

FORMAT_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "test": ("test",),
    "odi": ("odi", "one day", "one-day"),
    "t20": ("t20", "twenty20"),
}


def mentions_format(question_lower: str, fmt: str) -> bool:
    """True if the (lower-cased) question names the given format"""
    return any(keyword in question_lower for keyword in FORMAT_KEYWORDS[fmt])


@dataclass(frozen=True)
class FallbackRule:
    """One entry of the ordered rule list"""
    name: str
    aliases: Tuple[str, ...] = ()
    name_pattern: Optional[str] = None
    format: Optional[str] = None

    def matches(self, question_lower: str) -> bool:
        if self.aliases and not any(alias in question_lower for alias in self.aliases):
            return False
        if self.format and not mentions_format(question_lower, self.format):
            return False
        return True

    def to_query(self, limit: int = DEFAULT_LIMIT) -> QuerySpec:
        filter = {}
        if self.name_pattern:
            filter["name"] = {"$regex": self.name_pattern, "$options": "i"}
        if self.format:
            filter["format"] = self.format
        return QuerySpec(
            kind=QueryKind.FIND.value,
            filter=filter,
            sort={"runs": -1},
            limit=limit,
        )


def _build_rules() -> List[FallbackRule]:
    rules = []
    for aliases, pattern in PLAYER_ALIASES:
        for fmt in FORMAT_KEYWORDS:
            rules.append(FallbackRule(f"player+format:{aliases[0]}:{fmt}", aliases, pattern, fmt))
    for aliases, pattern in PLAYER_ALIASES:
        rules.append(FallbackRule(f"player:{aliases[0]}", aliases, pattern))
    for fmt in FORMAT_KEYWORDS:
        rules.append(FallbackRule(f"format:{fmt}", format=fmt))
    return rules


FALLBACK_RULES: List[FallbackRule] = _build_rules()
DEFAULT_RULE = FallbackRule("default:top-runs")


def match_fallback_rule(question: str) -> FallbackRule:
    """Return the first rule matching the question (the default rule if none)"""
    question_lower = (question or "").lower()
    for rule in FALLBACK_RULES:
        if rule.matches(question_lower):
            return rule
    return DEFAULT_RULE


def synthesize_fallback(question: str, limit: int = DEFAULT_LIMIT) -> QuerySpec:
    """Map a question to a query using keyword rules only"""
    return match_fallback_rule(question).to_query(limit)
