"""
Cricket Agent Schemas

Stored records, query shapes and the per-request execution trace.
"""

from .records import PlayerRecord, ConversationTurn, UserSummary, DisplayFormat
from .query import QueryKind, QuerySpec, SanitizedQuerySpec
from .trace import ExecutionTrace, TraceStep

__all__ = [
    "PlayerRecord",
    "ConversationTurn",
    "UserSummary",
    "DisplayFormat",
    "QueryKind",
    "QuerySpec",
    "SanitizedQuerySpec",
    "ExecutionTrace",
    "TraceStep",
]
