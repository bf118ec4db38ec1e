"""
Answer Formatter

Turns executor results into a display-ready answer:
- no results -> fixed text message
- one record -> one descriptive sentence
- several records -> table rows, in executor order (never re-sorted)

Missing numbers render as 0 / "0.00".

Optionally (formatter mode "llm") the LLM renders the answer instead; a
failure in that mode is fatal to the request.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from ..common.llm_client import LLMClient
from ..common.llm_utils import parse_llm_json
from ..common.schemas import DisplayFormat, ExecutionTrace, PlayerRecord
from .errors import FormattingError

logger = logging.getLogger("cricket_agent.pipeline.formatter")

NO_DATA_MESSAGE = "No data found for your query."
LLM_RESULT_LIMIT = 5
LLM_PAYLOAD_CHARS = 1500

FORMAT_PROMPT = """Format cricket data for display. Return ONLY valid JSON.

Question: {question}

Data: {results}

Required format for several players:
{{"format": "table", "data": [{{"Name": "PlayerName", "Country": "CountryCode", "Runs": 1000}}]}}
Required format for a single player:
{{"format": "text", "data": "One sentence describing the player's statistics"}}

Return JSON only, no text:"""


@dataclass(frozen=True)
class FormattedAnswer:
    display_format: DisplayFormat
    data: Any  # str for text, list of row dicts for table

    @property
    def is_table(self) -> bool:
        return self.display_format == DisplayFormat.TABLE

    def to_dict(self) -> Dict[str, Any]:
        return {"format": self.display_format.value, "data": self.data}


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def format_decimal(value: Any) -> str:
    number = _as_number(value)
    return f"{number:.2f}" if number is not None else "0.00"


def format_count(value: Any) -> int:
    number = _as_number(value)
    return int(number) if number is not None else 0


def _as_record(result: Any) -> PlayerRecord:
    if isinstance(result, PlayerRecord):
        return result
    if isinstance(result, Mapping):
        return PlayerRecord.model_validate(dict(result))
    raise TypeError(f"Cannot format result of type {type(result).__name__}")


def _format_label(player: PlayerRecord) -> str:
    return player.format.upper() if player.format else "ALL"


def describe_player(player: PlayerRecord) -> str:
    """Single-record sentence"""
    return (
        f"{player.name} ({player.country or 'Unknown'}) - "
        f"Format: {_format_label(player)}, "
        f"Runs: {format_count(player.runs)}, "
        f"Average: {format_decimal(player.average)}, "
        f"Highest Score: {player.highest_score or '0'}, "
        f"Strike Rate: {format_decimal(player.strike_rate)}"
    )


def player_row(player: PlayerRecord) -> Dict[str, Any]:
    return {
        "Name": player.name,
        "Country": player.country or "Unknown",
        "Format": _format_label(player),
        "Runs": format_count(player.runs),
        "Average": format_decimal(player.average),
        "Strike Rate": format_decimal(player.strike_rate),
        "Highest Score": player.highest_score or "0",
        "Matches": format_count(player.matches),
    }


def format_results(results: Any) -> FormattedAnswer:
    """Deterministic rendering of executor results"""
    if results is None or (isinstance(results, list) and not results):
        return FormattedAnswer(DisplayFormat.TEXT, NO_DATA_MESSAGE)

    if not isinstance(results, list):
        return FormattedAnswer(DisplayFormat.TEXT, describe_player(_as_record(results)))
    if len(results) == 1:
        return FormattedAnswer(DisplayFormat.TEXT, describe_player(_as_record(results[0])))

    rows = [player_row(_as_record(r)) for r in results]
    return FormattedAnswer(DisplayFormat.TABLE, rows)


class AnswerFormatter:
    """
    Formats query results for display.

    Deterministic unless built with an LLM client (formatter mode "llm").
    """

    STEP_NAME = "Answer Formatter"

    def __init__(self, llm: Optional[LLMClient] = None):
        self._llm = llm

    @property
    def uses_llm(self) -> bool:
        return self._llm is not None

    def format(self, question: str, results: Any, trace: Optional[ExecutionTrace] = None) -> FormattedAnswer:
        """
        Raises:
            FormattingError: only in LLM mode, when the model call or its
                output is unusable
        """
        empty = results is None or (isinstance(results, list) and not results)
        if self._llm is None or empty:
            answer = format_results(results)
            used_llm = False
        else:
            answer = self._format_with_llm(question, results)
            used_llm = True

        if trace is not None:
            trace.record(
                self.STEP_NAME,
                used_external_model=used_llm,
                input={"question": question, "count": 1 if not isinstance(results, list) else len(results)},
                output=answer.to_dict(),
            )
        return answer

    def _format_with_llm(self, question: str, results: Any) -> FormattedAnswer:
        if isinstance(results, list):
            limited: List[Dict[str, Any]] = [_as_record(r).to_document() for r in results[:LLM_RESULT_LIMIT]]
            payload = json.dumps(limited, indent=2)
        else:
            payload = json.dumps(_as_record(results).to_document(), indent=2)

        try:
            raw = self._llm.generate(
                FORMAT_PROMPT.format(question=question, results=payload[:LLM_PAYLOAD_CHARS])
            )
            data = parse_llm_json(raw)
        except Exception as e:
            logger.error("LLM formatting failed: %s", e)
            raise FormattingError(f"LLM formatting failed: {e}") from e

        display = data.get("format")
        body = data.get("data")
        if display == DisplayFormat.TABLE.value and isinstance(body, list) and all(isinstance(r, dict) for r in body):
            return FormattedAnswer(DisplayFormat.TABLE, body)
        if display == DisplayFormat.TEXT.value and isinstance(body, str):
            return FormattedAnswer(DisplayFormat.TEXT, body)
        raise FormattingError(f"LLM formatting returned an unsupported shape: {display!r}")
