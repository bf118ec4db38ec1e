"""Errors that end a request with ``success=False``."""


class PipelineError(Exception):
    """Base class for failures fatal to a single request"""


class QueryExecutionError(PipelineError):
    """The player store could not run the sanitized query"""


class FormattingError(PipelineError):
    """LLM answer formatting was requested and failed"""


class InvalidQuestionError(ValueError):
    """The question is empty, too short or too long"""
