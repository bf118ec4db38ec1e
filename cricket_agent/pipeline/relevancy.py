"""
Relevancy Gate

Decides whether a question is about cricket before any query work starts.
Uses the LLM when one is configured and the keyword heuristic otherwise, or
whenever the LLM call fails. Never raises.
"""

import logging
from typing import FrozenSet, Iterable, Optional

from ..common.llm_client import LLMClient
from ..common.schemas import ExecutionTrace

logger = logging.getLogger("cricket_agent.pipeline.relevancy")

CRICKET_KEYWORDS: FrozenSet[str] = frozenset({
    "cricket", "test", "odi", "t20", "ipl", "runs", "average",
    "strike rate", "century", "centuries", "fifty", "fifties", "duck",
    "batsman", "batsmen", "batter", "batting", "bowler", "wicket",
    "innings", "match", "matches", "score", "scorer", "highest", "top",
    "player", "babar", "kohli", "virat", "sachin", "tendulkar",
})

RELEVANCY_PROMPT = """You are a cricket domain expert. Determine if the following question is related to cricket.

Question: {question}

Respond with only 'true' if the question is about cricket, or 'false' if it's not about cricket."""


def is_cricket_question(question: str, keywords: Iterable[str] = CRICKET_KEYWORDS) -> bool:
    """Keyword heuristic: case-insensitive substring match"""
    question_lower = (question or "").lower()
    return any(keyword in question_lower for keyword in keywords)


class RelevancyGate:
    """
    Gatekeeper for off-topic questions.

    Strategies:
    1. LLM check (exact 'true'/'false' answer) when a client is configured
    2. Keyword heuristic otherwise, or when the LLM call fails
    """

    STEP_NAME = "Relevancy Checker"

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        keywords: Iterable[str] = CRICKET_KEYWORDS,
    ):
        self._llm = llm
        self._keywords = frozenset(k.lower() for k in keywords)

    @property
    def has_llm(self) -> bool:
        return self._llm is not None

    def is_relevant(self, question: str, trace: ExecutionTrace) -> bool:
        if self._llm is not None:
            try:
                raw = self._llm.generate(RELEVANCY_PROMPT.format(question=question), max_tokens=10)
                relevant = raw.lower().strip() == "true"
                trace.record(
                    self.STEP_NAME,
                    used_external_model=True,
                    input=question,
                    output=relevant,
                )
                return relevant
            except Exception as e:
                logger.warning("LLM relevancy check failed, using keyword heuristic: %s", e)
                return self._check_heuristic(question, trace, step_name=f"{self.STEP_NAME} (fallback)")

        return self._check_heuristic(question, trace, step_name=f"{self.STEP_NAME} (heuristic)")

    def _check_heuristic(self, question: str, trace: ExecutionTrace, step_name: str) -> bool:
        relevant = is_cricket_question(question, self._keywords)
        trace.record(step_name, used_external_model=False, input=question, output=relevant)
        return relevant
