"""
Conversation Memory

Per-user conversation history used as context for follow-up questions.

Reads degrade gracefully (empty context / empty history). Once a user has
more than ``compaction_threshold`` turns, everything except the newest
``keep_recent`` turns is summarized by the LLM into a single running summary
and deleted. Without an LLM, compaction never runs and turns accumulate.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Union

from ..common.config import MemoryConfig
from ..common.document_store import CONVERSATIONS, SUMMARIES, DocumentStore, StoreError
from ..common.llm_client import LLMClient
from ..common.schemas import ConversationTurn, DisplayFormat, UserSummary
from .formatter import FormattedAnswer

logger = logging.getLogger("cricket_agent.pipeline.memory")

OLDEST_FIRST = [("timestamp", 1), ("_id", 1)]
NEWEST_FIRST = [("timestamp", -1), ("_id", -1)]

SUMMARY_PROMPT = """Summarize this cricket conversation history into key facts and context that would be useful for future questions. Keep it concise (max {max_words} words):

{previous_summary}{conversations}

Summary:"""


def _truncate_words(text: str, max_words: int) -> str:
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words])


def render_answer(answer: FormattedAnswer) -> str:
    """What gets stored as the bot's side of a turn"""
    if answer.is_table:
        return f"Table with {len(answer.data)} results"
    return str(answer.data)


class ConversationMemory:
    """
    Stores conversation turns and summaries per user.

    Operations:
    - retrieve: summary + recent turns rendered as prompt context
    - save: append a turn, compacting old turns when over the threshold
    - history / summary: read access for clients
    - clear: forget a user
    """

    def __init__(
        self,
        store: DocumentStore,
        llm: Optional[LLMClient] = None,
        config: Optional[MemoryConfig] = None,
        summary_max_tokens: int = 300,
    ):
        self._store = store
        self._llm = llm
        self._config = config or MemoryConfig()
        self._summary_max_tokens = summary_max_tokens

    def retrieve(self, user_id: str) -> str:
        """Memory context for the synthesizer prompt ("" on any failure)"""
        try:
            recent = self._store.find(
                CONVERSATIONS,
                {"userId": user_id},
                sort=NEWEST_FIRST,
                limit=self._config.context_turns,
            )
            summary = self._store.find_one(SUMMARIES, {"userId": user_id})
        except StoreError as e:
            logger.warning("Memory retrieval failed for %s: %s", user_id, e)
            return ""

        context = ""
        if summary and summary.get("summary"):
            context += f"Previous conversation summary: {summary['summary']}\n\n"

        if recent:
            context += "Recent conversation history:\n"
            for index, doc in enumerate(reversed(recent), start=1):
                context += f"{index}. User: {doc.get('question', '')}\n   Bot: {doc.get('answer', '')}\n"

        return context.strip()

    def save(self, user_id: str, question: str, answer: Union[FormattedAnswer, str]) -> None:
        """Append a turn, then compact if the user is over the threshold"""
        if isinstance(answer, str):
            answer = FormattedAnswer(DisplayFormat.TEXT, answer)

        turn = ConversationTurn(
            user_id=user_id,
            question=question,
            answer=render_answer(answer),
            format=answer.display_format,
            data=answer.data if answer.is_table else None,
        )
        try:
            self._store.insert_one(CONVERSATIONS, turn.to_document())
        except StoreError as e:
            logger.warning("Failed to save conversation for %s: %s", user_id, e)
            return

        if self._llm is None:
            return

        try:
            count = self._store.count(CONVERSATIONS, {"userId": user_id})
            if count > self._config.compaction_threshold:
                self._compact(user_id)
        except Exception as e:
            logger.warning("Conversation compaction failed for %s: %s", user_id, e)

    def _compact(self, user_id: str) -> None:
        docs = self._store.find(CONVERSATIONS, {"userId": user_id}, sort=OLDEST_FIRST)
        keep = self._config.keep_recent
        if len(docs) <= keep:
            return

        old_docs = docs[:-keep] if keep > 0 else docs
        conversation_text = "\n\n".join(
            f"User: {doc.get('question', '')}\nBot: {doc.get('answer', '')}" for doc in old_docs
        )

        previous = self._store.find_one(SUMMARIES, {"userId": user_id})
        previous_summary = ""
        if previous and previous.get("summary"):
            previous_summary = f"Earlier summary:\n{previous['summary']}\n\n"

        prompt = SUMMARY_PROMPT.format(
            max_words=self._config.summary_max_words,
            previous_summary=previous_summary,
            conversations=conversation_text,
        )
        summary_text = self._llm.generate(prompt, max_tokens=self._summary_max_tokens).strip()
        summary_text = _truncate_words(summary_text, self._config.summary_max_words)
        if not summary_text:
            raise ValueError("LLM returned an empty summary")

        self._store.upsert_one(
            SUMMARIES,
            {"userId": user_id},
            {
                "summary": summary_text,
                "conversationCount": len(docs),
                "lastUpdated": datetime.now(timezone.utc),
            },
        )
        deleted = self._store.delete_many(
            CONVERSATIONS, {"_id": {"$in": [doc["_id"] for doc in old_docs]}}
        )
        logger.info("Compacted %d turns for %s into summary", deleted, user_id)

    def history(self, user_id: str, limit: Optional[int] = None) -> List[ConversationTurn]:
        """Most recent turns, newest first ([] on failure)"""
        try:
            docs = self._store.find(
                CONVERSATIONS,
                {"userId": user_id},
                sort=NEWEST_FIRST,
                limit=limit or self._config.history_limit,
            )
        except StoreError as e:
            logger.warning("Failed to load history for %s: %s", user_id, e)
            return []
        return [ConversationTurn.from_document(doc) for doc in docs]

    def summary(self, user_id: str) -> Optional[UserSummary]:
        try:
            doc = self._store.find_one(SUMMARIES, {"userId": user_id})
        except StoreError as e:
            logger.warning("Failed to load summary for %s: %s", user_id, e)
            return None
        return UserSummary.model_validate(doc) if doc else None

    def clear(self, user_id: str) -> None:
        """Delete every turn and the summary of a user (idempotent)"""
        turns = self._store.delete_many(CONVERSATIONS, {"userId": user_id})
        self._store.delete_one(SUMMARIES, {"userId": user_id})
        logger.info("Cleared memory for %s (%d turns)", user_id, turns)
