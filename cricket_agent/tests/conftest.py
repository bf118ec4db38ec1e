"""Shared fixtures: an in-memory stand-in for DocumentStore and sample players."""

import copy
import re
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest

from cricket_agent.common.document_store import PLAYERS, StoreError, _sort_items


def _matches(doc: Dict[str, Any], filter: Dict[str, Any]) -> bool:
    for key, expected in filter.items():
        value = doc.get(key)
        if isinstance(expected, dict):
            if "$in" in expected and value not in expected["$in"]:
                return False
            if "$regex" in expected:
                flags = re.IGNORECASE if "i" in expected.get("$options", "") else 0
                if not isinstance(value, str) or not re.search(expected["$regex"], value, flags):
                    return False
            if "$gt" in expected and not (value is not None and value > expected["$gt"]):
                return False
            if "$gte" in expected and not (value is not None and value >= expected["$gte"]):
                return False
        elif value != expected:
            return False
    return True


class FakeDocumentStore:
    """Same surface as DocumentStore, backed by lists of dicts.

    Supports equality, $in, $regex and $gt/$gte filters, multi-key sort,
    limit and exclusion projections.
    """

    def __init__(self):
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_on: set = set()  # method names that raise StoreError
        self._next_id = 1

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            raise StoreError(f"{method} failed: connection refused")

    def _docs(self, collection: str) -> List[Dict[str, Any]]:
        return self.collections.setdefault(collection, [])

    def seed(self, collection: str, docs: List[Dict[str, Any]]) -> None:
        for doc in docs:
            self.insert_one(collection, doc)

    def find(self, collection, filter, *, sort=None, limit=None, projection=None):
        self._check("find")
        docs = [d for d in self._docs(collection) if _matches(d, filter)]
        for key, direction in reversed(_sort_items(sort) or []):
            docs.sort(key=lambda d: d.get(key), reverse=direction == -1)
        if limit:
            docs = docs[:limit]
        return [self._project(d, projection) for d in docs]

    def find_one(self, collection, filter, *, sort=None, projection=None) -> Optional[Dict[str, Any]]:
        self._check("find_one")
        docs = self.find(collection, filter, sort=sort, projection=projection)
        return docs[0] if docs else None

    def insert_one(self, collection, document):
        self._check("insert_one")
        doc = copy.deepcopy(dict(document))
        doc.setdefault("_id", self._next_id)
        self._next_id += 1
        self._docs(collection).append(doc)
        return str(doc["_id"])

    def delete_many(self, collection, filter):
        self._check("delete_many")
        docs = self._docs(collection)
        keep = [d for d in docs if not _matches(d, filter)]
        self.collections[collection] = keep
        return len(docs) - len(keep)

    def delete_one(self, collection, filter):
        self._check("delete_one")
        docs = self._docs(collection)
        for i, doc in enumerate(docs):
            if _matches(doc, filter):
                del docs[i]
                return 1
        return 0

    def count(self, collection, filter):
        self._check("count")
        return len([d for d in self._docs(collection) if _matches(d, filter)])

    def upsert_one(self, collection, filter, fields):
        self._check("upsert_one")
        for doc in self._docs(collection):
            if _matches(doc, filter):
                doc.update(copy.deepcopy(dict(fields)))
                return
        self.insert_one(collection, {**filter, **fields})

    def sum_field(self, collection, filter, field):
        self._check("sum_field")
        return sum(d.get(field, 0) for d in self._docs(collection) if _matches(d, filter))

    def ping(self):
        return "ping" not in self.fail_on

    @staticmethod
    def _project(doc, projection):
        doc = copy.deepcopy(doc)
        for key, include in (projection or {}).items():
            if not include:
                doc.pop(key, None)
        return doc


SAMPLE_PLAYERS = [
    {"name": "Sachin Tendulkar", "country": "IND", "format": "test", "span": "1989-2013",
     "matches": 200, "innings": 329, "runs": 15921, "highestScore": "248*", "average": 53.78,
     "strikeRate": 54.08, "centuries": 51, "fifties": 68, "ducks": 14, "__v": 0},
    {"name": "Joe Root", "country": "ENG", "format": "test", "span": "2012-2024",
     "matches": 146, "innings": 267, "runs": 12402, "highestScore": "262", "average": 50.01,
     "strikeRate": 56.9, "centuries": 34, "fifties": 64, "ducks": 12, "__v": 0},
    {"name": "Virat Kohli", "country": "IND", "format": "odi", "span": "2008-2024",
     "matches": 295, "innings": 283, "runs": 13848, "highestScore": "183", "average": 58.07,
     "strikeRate": 93.35, "centuries": 50, "fifties": 72, "ducks": 16, "__v": 0},
    {"name": "Kumar Sangakkara", "country": "SL", "format": "odi", "span": "2000-2015",
     "matches": 404, "innings": 380, "runs": 14234, "highestScore": "169", "average": 41.98,
     "strikeRate": 78.86, "centuries": 25, "fifties": 93, "ducks": 15, "__v": 0},
    {"name": "Babar Azam", "country": "PAK", "format": "odi", "span": "2015-2024",
     "matches": 117, "innings": 114, "runs": 5729, "highestScore": "158", "average": 56.72,
     "strikeRate": 88.75, "centuries": 19, "fifties": 32, "ducks": 4, "__v": 0},
    {"name": "Babar Azam", "country": "PAK", "format": "t20", "span": "2016-2024",
     "matches": 123, "innings": 116, "runs": 4145, "highestScore": "122", "average": 41.03,
     "strikeRate": 129.08, "centuries": 3, "fifties": 36, "ducks": 7, "__v": 0},
    {"name": "Rohit Sharma", "country": "IND", "format": "t20", "span": "2007-2024",
     "matches": 159, "innings": 151, "runs": 4231, "highestScore": "121*", "average": 32.05,
     "strikeRate": 140.89, "centuries": 5, "fifties": 32, "ducks": 12, "__v": 0},
    {"name": "Virat Kohli", "country": "IND", "format": "t20", "span": "2010-2024",
     "matches": 125, "innings": 117, "runs": 4188, "highestScore": "122*", "average": 48.69,
     "strikeRate": 137.04, "centuries": 1, "fifties": 38, "ducks": 7, "__v": 0},
]


@pytest.fixture
def store():
    return FakeDocumentStore()


@pytest.fixture
def seeded_store(store):
    store.seed(PLAYERS, SAMPLE_PLAYERS)
    return store


@pytest.fixture
def mock_llm():
    llm = Mock()
    llm.generate.return_value = ""
    return llm
