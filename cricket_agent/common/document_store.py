"""
Document Store

Thin wrapper over a MongoDB database (pymongo) exposing the handful of
collection operations the pipeline needs. All driver errors surface as
``StoreError``.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from .config import MongoConfig

logger = logging.getLogger("cricket_agent.common.document_store")

PLAYERS = "players"
CONVERSATIONS = "conversations"
SUMMARIES = "summaries"

SortSpec = Union[Mapping[str, int], Sequence[Tuple[str, int]]]


class StoreError(RuntimeError):
    """Raised when the underlying store call fails"""


def _sort_items(sort: Optional[SortSpec]) -> Optional[List[Tuple[str, int]]]:
    if not sort:
        return None
    if isinstance(sort, Mapping):
        return list(sort.items())
    return list(sort)


class DocumentStore:
    """
    Collection-level access to the cricket database.

    Collections:
    - players: PlayerRecord documents (seeded externally)
    - conversations: ConversationTurn documents
    - summaries: UserSummary documents (one per user)
    """

    def __init__(self, database, client: Optional[MongoClient] = None):
        """
        Args:
            database: pymongo Database (or compatible object)
            client: Owning MongoClient, closed by close()
        """
        self._db = database
        self._client = client

    @classmethod
    def from_config(cls, mongo_config: MongoConfig) -> "DocumentStore":
        client = MongoClient(
            mongo_config.uri,
            serverSelectionTimeoutMS=mongo_config.server_selection_timeout_ms,
        )
        logger.info("Using MongoDB database %r", mongo_config.database)
        return cls(client[mongo_config.database], client=client)

    def ensure_indexes(self) -> None:
        """Create the indexes used by player lookups and memory queries"""
        try:
            players = self._db[PLAYERS]
            players.create_index([("format", ASCENDING), ("runs", DESCENDING)])
            players.create_index([("format", ASCENDING), ("average", DESCENDING)])
            players.create_index([("name", ASCENDING), ("format", ASCENDING)])
            players.create_index([("country", ASCENDING), ("format", ASCENDING)])
            self._db[CONVERSATIONS].create_index([("userId", ASCENDING), ("timestamp", DESCENDING)])
            self._db[SUMMARIES].create_index("userId", unique=True)
        except PyMongoError as e:
            raise StoreError(f"Index creation failed: {e}") from e

    def ping(self) -> bool:
        try:
            self._db.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("Store ping failed: %s", e)
            return False

    def find(
        self,
        collection: str,
        filter: Mapping[str, Any],
        *,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
        projection: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        try:
            cursor = self._db[collection].find(dict(filter), projection)
            sort_items = _sort_items(sort)
            if sort_items:
                cursor = cursor.sort(sort_items)
            if limit:
                cursor = cursor.limit(limit)
            return list(cursor)
        except PyMongoError as e:
            raise StoreError(f"find on {collection} failed: {e}") from e

    def find_one(
        self,
        collection: str,
        filter: Mapping[str, Any],
        *,
        sort: Optional[SortSpec] = None,
        projection: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        try:
            return self._db[collection].find_one(dict(filter), projection, sort=_sort_items(sort))
        except PyMongoError as e:
            raise StoreError(f"find_one on {collection} failed: {e}") from e

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> str:
        try:
            result = self._db[collection].insert_one(dict(document))
            return str(result.inserted_id)
        except PyMongoError as e:
            raise StoreError(f"insert into {collection} failed: {e}") from e

    def delete_many(self, collection: str, filter: Mapping[str, Any]) -> int:
        try:
            return self._db[collection].delete_many(dict(filter)).deleted_count
        except PyMongoError as e:
            raise StoreError(f"delete_many on {collection} failed: {e}") from e

    def delete_one(self, collection: str, filter: Mapping[str, Any]) -> int:
        try:
            return self._db[collection].delete_one(dict(filter)).deleted_count
        except PyMongoError as e:
            raise StoreError(f"delete_one on {collection} failed: {e}") from e

    def count(self, collection: str, filter: Mapping[str, Any]) -> int:
        try:
            return self._db[collection].count_documents(dict(filter))
        except PyMongoError as e:
            raise StoreError(f"count on {collection} failed: {e}") from e

    def upsert_one(self, collection: str, filter: Mapping[str, Any], fields: Mapping[str, Any]) -> None:
        """Replace ``fields`` on the matching document, creating it if missing"""
        try:
            self._db[collection].update_one(dict(filter), {"$set": dict(fields)}, upsert=True)
        except PyMongoError as e:
            raise StoreError(f"upsert on {collection} failed: {e}") from e

    def sum_field(self, collection: str, filter: Mapping[str, Any], field: str) -> float:
        pipeline = [
            {"$match": dict(filter)},
            {"$group": {"_id": None, "total": {"$sum": f"${field}"}}},
        ]
        try:
            rows = list(self._db[collection].aggregate(pipeline))
        except PyMongoError as e:
            raise StoreError(f"aggregate on {collection} failed: {e}") from e
        return rows[0].get("total", 0) if rows else 0

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
