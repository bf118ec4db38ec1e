"""
Query Executor

Runs a sanitized query against the players collection.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from ..common.document_store import PLAYERS, DocumentStore, StoreError
from ..common.schemas import ExecutionTrace, PlayerRecord, SanitizedQuerySpec
from .errors import QueryExecutionError

logger = logging.getLogger("cricket_agent.pipeline.executor")

# Storage identifiers never leave the executor
PLAYER_PROJECTION = {"_id": 0, "__v": 0}

PLAYER_FORMATS = ("test", "odi", "t20")

QueryResult = Union[PlayerRecord, List[PlayerRecord], None]


class QueryExecutor:
    """Executes find / find-one lookups on player statistics"""

    STEP_NAME = "Query Executor"

    def __init__(self, store: DocumentStore):
        self._store = store

    def execute(self, query: SanitizedQuerySpec, trace: Optional[ExecutionTrace] = None) -> QueryResult:
        """
        Args:
            query: Output of the sanitizer (raw candidates are rejected)
            trace: Request trace, receives one step on success

        Returns:
            One PlayerRecord (or None) for find-one, a list otherwise

        Raises:
            QueryExecutionError: if the store call fails
        """
        if not isinstance(query, SanitizedQuerySpec):
            raise TypeError("QueryExecutor only runs sanitized queries")

        try:
            if query.is_find_one:
                doc = self._store.find_one(
                    PLAYERS, query.filter, sort=query.sort, projection=PLAYER_PROJECTION,
                )
                results: QueryResult = PlayerRecord.model_validate(doc) if doc else None
            else:
                docs = self._store.find(
                    PLAYERS,
                    query.filter,
                    sort=query.sort,
                    limit=query.limit,
                    projection=PLAYER_PROJECTION,
                )
                results = [PlayerRecord.model_validate(d) for d in docs]
        except (StoreError, ValidationError) as e:
            raise QueryExecutionError(f"Query execution failed: {e}") from e

        if trace is not None:
            trace.record(
                self.STEP_NAME,
                used_external_model=False,
                input=query.to_dict(),
                output={"count": _count(results)},
            )
        return results


def _count(results: QueryResult) -> int:
    if results is None:
        return 0
    if isinstance(results, list):
        return len(results)
    return 1


def player_stats(store: DocumentStore) -> Dict[str, Dict[str, Any]]:
    """Number of players and total runs per format"""
    stats = {}
    for fmt in PLAYER_FORMATS:
        stats[fmt] = {
            "players": store.count(PLAYERS, {"format": fmt}),
            "totalRuns": store.sum_field(PLAYERS, {"format": fmt}, "runs"),
        }
    return stats
