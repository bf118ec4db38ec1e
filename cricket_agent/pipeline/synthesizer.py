"""
Query Synthesizer

Turns a question plus conversation memory into a query candidate.

With an LLM: one prompt asking for strict JSON, cleaned and parsed. Any
failure (timeout, provider error, malformed or non-object JSON) falls back
to the deterministic keyword rules. There are no retries.
Without an LLM: keyword rules only.

The candidate is untrusted either way and must go through the sanitizer.
"""

import logging
from typing import Optional

from ..common.llm_client import LLMClient
from ..common.llm_utils import parse_llm_json
from ..common.schemas import ExecutionTrace, QuerySpec
from .fallback import DEFAULT_LIMIT, match_fallback_rule

logger = logging.getLogger("cricket_agent.pipeline.synthesizer")

QUERY_PROMPT = """You translate cricket statistics questions into MongoDB queries over a "players" collection.

Each document has: name, country, format ("test" | "odi" | "t20"), span, matches, innings,
runs, highestScore (string, "*" means not out), average, strikeRate, centuries, fifties, ducks.

{memory_section}Question: {question}

Return ONLY a valid JSON object with keys "type" ("find" or "findOne"), "filter", "sort", "limit".

Examples:
"babar azam" -> {{"type":"find","filter":{{"name":{{"$regex":"Babar","$options":"i"}}}},"sort":{{"runs":-1}},"limit":5}}
"highest scores" -> {{"type":"find","filter":{{}},"sort":{{"runs":-1}},"limit":5}}
"kohli odi stats" -> {{"type":"find","filter":{{"name":{{"$regex":"Kohli","$options":"i"}},"format":"odi"}},"sort":{{"runs":-1}},"limit":5}}
"best t20 strike rate" -> {{"type":"find","filter":{{"format":"t20"}},"sort":{{"strikeRate":-1}},"limit":5}}

JSON:"""


class QuerySynthesizer:
    """
    Produces query candidates from natural language.

    Falls back to keyword rules if the LLM is not available or fails.
    """

    STEP_NAME = "Query Generator"

    def __init__(self, llm: Optional[LLMClient] = None, default_limit: int = DEFAULT_LIMIT):
        self._llm = llm
        self._default_limit = default_limit

    @property
    def has_llm(self) -> bool:
        return self._llm is not None

    def synthesize(self, question: str, memory_context: str, trace: ExecutionTrace) -> QuerySpec:
        """
        Args:
            question: The user's question
            memory_context: Rendered conversation memory ("" if none)
            trace: Request trace, receives exactly one step

        Returns:
            Untrusted QuerySpec candidate
        """
        if self._llm is None:
            return self._synthesize_fallback(question, trace, step_name=self.STEP_NAME)

        try:
            return self._synthesize_with_llm(question, memory_context, trace)
        except Exception as e:
            logger.warning("LLM query generation failed, using keyword rules: %s", e)
            return self._synthesize_fallback(question, trace, step_name=f"{self.STEP_NAME} (fallback)")

    def _synthesize_with_llm(self, question: str, memory_context: str, trace: ExecutionTrace) -> QuerySpec:
        memory_section = ""
        if memory_context:
            memory_section = f"Conversation memory (use it to resolve follow-up questions):\n{memory_context}\n\n"

        prompt = QUERY_PROMPT.format(question=question, memory_section=memory_section)
        raw = self._llm.generate(prompt)
        data = parse_llm_json(raw)
        spec = QuerySpec.from_raw(data)

        trace.record(
            self.STEP_NAME,
            used_external_model=True,
            input={"question": question, "memory": memory_context},
            output=spec.to_dict(),
        )
        return spec

    def _synthesize_fallback(self, question: str, trace: ExecutionTrace, step_name: str) -> QuerySpec:
        rule = match_fallback_rule(question)
        spec = rule.to_query(self._default_limit)
        trace.record(
            step_name,
            used_external_model=False,
            input=question,
            output={"rule": rule.name, "query": spec.to_dict()},
        )
        return spec
