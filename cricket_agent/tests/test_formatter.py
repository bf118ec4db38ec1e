"""Tests for answer formatting."""

import pytest

from cricket_agent.common.schemas import DisplayFormat, ExecutionTrace, PlayerRecord
from cricket_agent.pipeline.errors import FormattingError
from cricket_agent.pipeline.formatter import (
    NO_DATA_MESSAGE,
    AnswerFormatter,
    format_results,
)

KOHLI = {
    "name": "Virat Kohli", "country": "IND", "format": "odi", "runs": 13848,
    "average": 58.07, "highestScore": "183", "strikeRate": 93.35,
}


class TestDeterministic:
    @pytest.mark.parametrize("results", [None, []])
    def test_no_data(self, results):
        answer = format_results(results)
        assert answer.display_format == DisplayFormat.TEXT
        assert answer.data == NO_DATA_MESSAGE

    def test_single_record_sentence(self):
        answer = format_results(PlayerRecord.model_validate(KOHLI))
        assert answer.display_format == DisplayFormat.TEXT
        assert "Virat Kohli (IND) - Format: ODI, Runs: 13848, Average: 58.07, " \
               "Highest Score: 183, Strike Rate: 93.35" in answer.data

    def test_one_element_list_is_text(self):
        answer = format_results([KOHLI])
        assert answer.display_format == DisplayFormat.TEXT
        assert answer.data.startswith("Virat Kohli (IND)")

    def test_table_preserves_order(self):
        rows = [
            {"name": "B", "runs": 10},
            {"name": "A", "runs": 500},
            {"name": "C", "runs": 90},
        ]
        answer = format_results([PlayerRecord.model_validate(r) for r in rows])
        assert answer.display_format == DisplayFormat.TABLE
        assert [row["Name"] for row in answer.data] == ["B", "A", "C"]

    def test_table_defaults(self):
        answer = format_results([{"name": "Unknown Bat"}, KOHLI])
        row = answer.data[0]
        assert row == {
            "Name": "Unknown Bat",
            "Country": "Unknown",
            "Format": "ALL",
            "Runs": 0,
            "Average": "0.00",
            "Strike Rate": "0.00",
            "Highest Score": "0",
            "Matches": 0,
        }
        assert answer.data[1]["Format"] == "ODI"
        assert answer.data[1]["Average"] == "58.07"

    def test_sentence_defaults(self):
        answer = format_results({"name": "New Cap"})
        assert answer.data == (
            "New Cap (Unknown) - Format: ALL, Runs: 0, Average: 0.00, "
            "Highest Score: 0, Strike Rate: 0.00"
        )

    def test_trace_step(self):
        trace = ExecutionTrace()
        AnswerFormatter().format("kohli", [KOHLI, KOHLI], trace)
        step = trace.steps[0]
        assert step.step_name == "Answer Formatter"
        assert step.used_external_model is False
        assert step.output["format"] == "table"


class TestLLMMode:
    def test_llm_table(self, mock_llm):
        mock_llm.generate.return_value = '```json\n{"format": "table", "data": [{"Name": "Virat Kohli"}]}\n```'
        formatter = AnswerFormatter(mock_llm)
        trace = ExecutionTrace()
        answer = formatter.format("kohli", [KOHLI, KOHLI], trace)
        assert answer.is_table
        assert answer.data == [{"Name": "Virat Kohli"}]
        assert trace.steps[0].used_external_model is True

    def test_llm_skipped_for_empty_results(self, mock_llm):
        answer = AnswerFormatter(mock_llm).format("nobody", [])
        assert answer.data == NO_DATA_MESSAGE
        mock_llm.generate.assert_not_called()

    def test_llm_failure_is_fatal(self, mock_llm):
        mock_llm.generate.side_effect = TimeoutError("timed out")
        with pytest.raises(FormattingError):
            AnswerFormatter(mock_llm).format("kohli", KOHLI)

    def test_llm_bad_shape_is_fatal(self, mock_llm):
        mock_llm.generate.return_value = '{"format": "chart", "data": 3}'
        with pytest.raises(FormattingError, match="unsupported shape"):
            AnswerFormatter(mock_llm).format("kohli", [KOHLI, KOHLI])
