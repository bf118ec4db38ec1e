"""
Cricket Stats Agent

Answers natural-language questions about cricket batting statistics.

Pipeline:
- Relevancy gate (keyword heuristic or LLM check)
- Query synthesis (LLM with deterministic fallback)
- Allowlist sanitization of the synthesized query
- Execution against the player statistics store
- Answer formatting (text sentence or table)
- Per-user conversation memory with LLM summarization

Usage:
    from cricket_agent.common import load_config
    from cricket_agent.pipeline import CricketPipeline
"""

__version__ = "0.1.0"
