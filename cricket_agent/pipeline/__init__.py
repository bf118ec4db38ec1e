"""
Cricket Agent Pipeline

Relevancy gate, query synthesis, sanitization, execution, formatting and
conversation memory.
"""

from .errors import PipelineError, QueryExecutionError, FormattingError, InvalidQuestionError
from .fallback import synthesize_fallback
from .sanitizer import sanitize
from .relevancy import RelevancyGate
from .synthesizer import QuerySynthesizer
from .executor import QueryExecutor, player_stats
from .formatter import AnswerFormatter, FormattedAnswer
from .memory import ConversationMemory
from .orchestrator import CricketPipeline, AskResponse

__all__ = [
    "PipelineError",
    "QueryExecutionError",
    "FormattingError",
    "InvalidQuestionError",
    "synthesize_fallback",
    "sanitize",
    "RelevancyGate",
    "QuerySynthesizer",
    "QueryExecutor",
    "player_stats",
    "AnswerFormatter",
    "FormattedAnswer",
    "ConversationMemory",
    "CricketPipeline",
    "AskResponse",
]
