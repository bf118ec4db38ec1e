"""Tests for the query synthesizer."""

import pytest

from cricket_agent.common.schemas import ExecutionTrace
from cricket_agent.pipeline.synthesizer import QuerySynthesizer


class TestWithoutLLM:
    def test_uses_keyword_rules(self):
        trace = ExecutionTrace()
        spec = QuerySynthesizer().synthesize("kohli odi stats", "", trace)
        assert spec.filter == {"name": {"$regex": "Kohli|Virat", "$options": "i"}, "format": "odi"}
        assert trace.step_names == ["Query Generator"]
        assert trace.steps[0].output["rule"] == "player+format:kohli:odi"

    def test_configured_default_limit(self):
        spec = QuerySynthesizer(default_limit=12).synthesize("top scorers", "", ExecutionTrace())
        assert spec.limit == 12


class TestWithLLM:
    def test_parses_fenced_json(self, mock_llm):
        mock_llm.generate.return_value = (
            "Here you go:\n```json\n"
            '{"type": "findOne", "filter": {"name": {"$regex": "Root", "$options": "i"}}, "sort": null, "limit": 1}'
            "\n```"
        )
        trace = ExecutionTrace()
        spec = QuerySynthesizer(mock_llm).synthesize("joe root", "", trace)
        assert spec.kind == "findOne"
        assert spec.filter == {"name": {"$regex": "Root", "$options": "i"}}
        assert spec.limit == 1
        assert trace.step_names == ["Query Generator"]
        assert trace.steps[0].used_external_model is True

    def test_memory_context_in_prompt(self, mock_llm):
        mock_llm.generate.return_value = '{"type": "find", "filter": {}}'
        QuerySynthesizer(mock_llm).synthesize(
            "and in tests?", "1. User: kohli odi\n   Bot: ...", ExecutionTrace(),
        )
        prompt = mock_llm.generate.call_args[0][0]
        assert "Conversation memory" in prompt
        assert "1. User: kohli odi" in prompt
        assert "and in tests?" in prompt

    def test_no_memory_section_when_empty(self, mock_llm):
        mock_llm.generate.return_value = '{"type": "find", "filter": {}}'
        QuerySynthesizer(mock_llm).synthesize("top scorers", "", ExecutionTrace())
        assert "Conversation memory" not in mock_llm.generate.call_args[0][0]

    @pytest.mark.parametrize("raw", [
        "I cannot help with that",
        '{"type": "find", "filter": ',
        "[1, 2, 3]",
        "",
    ])
    def test_malformed_output_falls_back(self, mock_llm, raw):
        mock_llm.generate.return_value = raw
        trace = ExecutionTrace()
        spec = QuerySynthesizer(mock_llm).synthesize("babar azam t20", "", trace)
        assert spec.filter["format"] == "t20"
        assert trace.step_names == ["Query Generator (fallback)"]
        assert trace.steps[0].used_external_model is False

    def test_timeout_falls_back_without_retry(self, mock_llm):
        mock_llm.generate.side_effect = TimeoutError("LLM call timed out")
        trace = ExecutionTrace()
        spec = QuerySynthesizer(mock_llm).synthesize("top scorers", "", trace)
        assert spec.to_dict() == {"type": "find", "filter": {}, "sort": {"runs": -1}, "limit": 5}
        assert mock_llm.generate.call_count == 1
        assert trace.step_names == ["Query Generator (fallback)"]
