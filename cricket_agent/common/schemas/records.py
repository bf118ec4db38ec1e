"""
Stored record shapes.

Field names are snake_case in Python and camelCase in the store
(``strikeRate``, ``highestScore``, ``userId``...), mapped through aliases.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DisplayFormat(str, Enum):
    """How an answer is meant to be displayed"""
    TEXT = "text"
    TABLE = "table"


class PlayerRecord(BaseModel):
    """Career batting statistics of one player in one format (read-only)"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    country: Optional[str] = None
    format: Optional[str] = None  # 'test', 'odi', 't20'
    span: Optional[str] = None
    matches: Optional[int] = None
    innings: Optional[int] = None
    runs: Optional[int] = None
    highest_score: Optional[str] = Field(default=None, alias="highestScore")  # "200*" keeps the not-out marker
    average: Optional[float] = None
    strike_rate: Optional[float] = Field(default=None, alias="strikeRate")
    centuries: Optional[int] = None
    fifties: Optional[int] = None
    ducks: Optional[int] = None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ConversationTurn(BaseModel):
    """One question/answer exchange of a user"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None  # store identifier, absent before insert
    user_id: str = Field(alias="userId")
    question: str
    answer: str
    format: DisplayFormat = DisplayFormat.TEXT
    data: Optional[Any] = None
    timestamp: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ConversationTurn":
        fields = dict(doc)
        if "_id" in fields:
            fields["id"] = str(fields.pop("_id"))
        return cls.model_validate(fields)

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(by_alias=True, exclude={"id"})
        doc["format"] = self.format.value
        return doc


class UserSummary(BaseModel):
    """Running summary of a user's compacted conversation history"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    summary: str
    conversation_count: int = Field(default=0, alias="conversationCount")
    last_updated: datetime = Field(default_factory=_utcnow, alias="lastUpdated")
