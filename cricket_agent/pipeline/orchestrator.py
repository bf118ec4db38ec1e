"""
Cricket Question Pipeline

question -> relevancy gate -> memory retrieval -> query synthesis ->
sanitizer -> executor -> formatter -> memory update -> response

Every request gets its own ExecutionTrace; it is returned with the response
whatever the outcome. Self-healing failures (LLM errors, memory reads) never
surface; store and LLM-formatting failures end the request with
``success=False``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..common.config import CricketConfig
from ..common.document_store import DocumentStore
from ..common.llm_client import LLMClient, build_llm_client
from ..common.schemas import DisplayFormat, ExecutionTrace
from .errors import InvalidQuestionError, PipelineError
from .executor import QueryExecutor
from .formatter import AnswerFormatter, FormattedAnswer
from .memory import ConversationMemory
from .relevancy import RelevancyGate
from .sanitizer import sanitize
from .synthesizer import QuerySynthesizer

logger = logging.getLogger("cricket_agent.pipeline.orchestrator")

OFF_TOPIC_MESSAGE = "Sorry, I can only answer cricket-related questions."
MIN_QUESTION_LENGTH = 3
MAX_QUESTION_LENGTH = 500


@dataclass
class AskResponse:
    """Structured result of one question"""
    success: bool
    trace: ExecutionTrace
    format: Optional[DisplayFormat] = None
    data: Any = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.format is not None:
            result["format"] = self.format.value
        if self.data is not None:
            result["data"] = self.data
        if self.message is not None:
            result["message"] = self.message
        result["trace"] = self.trace.to_list()
        result["traceSummary"] = self.trace.summary()
        return result


def validate_question(question: Any) -> str:
    """Trim and length-check a question"""
    if not isinstance(question, str) or not question.strip():
        raise InvalidQuestionError("Question cannot be empty")
    question = question.strip()
    if len(question) < MIN_QUESTION_LENGTH:
        raise InvalidQuestionError(f"Question must be at least {MIN_QUESTION_LENGTH} characters")
    if len(question) > MAX_QUESTION_LENGTH:
        raise InvalidQuestionError(f"Question must not exceed {MAX_QUESTION_LENGTH} characters")
    return question


class CricketPipeline:
    """
    Answers cricket statistics questions for a user.

    The LLM client is optional: without it every stage uses its
    deterministic path.
    """

    def __init__(
        self,
        store: DocumentStore,
        llm: Optional[LLMClient] = None,
        config: Optional[CricketConfig] = None,
    ):
        config = config or CricketConfig()
        self._store = store
        self._llm = llm
        self._query_config = config.query

        self.relevancy = RelevancyGate(llm)
        self.synthesizer = QuerySynthesizer(llm, default_limit=config.query.default_limit)
        self.executor = QueryExecutor(store)
        self.formatter = AnswerFormatter(llm if config.formatter.mode == "llm" else None)
        self.memory = ConversationMemory(
            store,
            llm,
            config.memory,
            summary_max_tokens=config.llm.summary_max_tokens,
        )

    @classmethod
    def from_config(cls, config: CricketConfig) -> "CricketPipeline":
        store = DocumentStore.from_config(config.mongo)
        return cls(store, build_llm_client(config.llm), config)

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def has_llm(self) -> bool:
        return self._llm is not None

    def ask(self, question: Any, user_id: str) -> AskResponse:
        """
        Answer one question.

        Never raises: every outcome is an AskResponse carrying the trace.
        """
        trace = ExecutionTrace()
        try:
            question = validate_question(question)
        except InvalidQuestionError as e:
            return AskResponse(success=False, trace=trace, format=DisplayFormat.TEXT, message=str(e))

        try:
            return self._answer(question, user_id, trace)
        except PipelineError as e:
            logger.error("Request failed for %s: %s", user_id, e)
            return AskResponse(
                success=False,
                trace=trace,
                format=DisplayFormat.TEXT,
                message=f"Error processing question: {e}",
            )
        except Exception as e:
            logger.exception("Unexpected pipeline failure for %s", user_id)
            return AskResponse(
                success=False,
                trace=trace,
                format=DisplayFormat.TEXT,
                message=f"Error processing question: {e or 'Unknown error'}",
            )

    def _answer(self, question: str, user_id: str, trace: ExecutionTrace) -> AskResponse:
        if not self.relevancy.is_relevant(question, trace):
            self.memory.save(user_id, question, OFF_TOPIC_MESSAGE)
            trace.record("Memory Update", used_external_model=False, input=user_id, output="Rejected question saved")
            return AskResponse(
                success=False,
                trace=trace,
                format=DisplayFormat.TEXT,
                message=OFF_TOPIC_MESSAGE,
            )

        memory_context = self.memory.retrieve(user_id)
        trace.record("Memory Retrieval", used_external_model=False, input=user_id, output=memory_context)

        candidate = self.synthesizer.synthesize(question, memory_context, trace)
        query = sanitize(
            candidate,
            min_limit=self._query_config.min_limit,
            max_limit=self._query_config.max_limit,
        )
        trace.record("Query Sanitizer", used_external_model=False, input=candidate.to_dict(), output=query.to_dict())

        results = self.executor.execute(query, trace)
        answer: FormattedAnswer = self.formatter.format(question, results, trace)

        self.memory.save(user_id, question, answer)
        trace.record("Memory Update", used_external_model=False, input=user_id, output="Conversation saved")

        trace.record("Final Response", used_external_model=False, input=answer.to_dict(), output="Response prepared")
        return AskResponse(
            success=True,
            trace=trace,
            format=answer.display_format,
            data=answer.data,
        )
