"""
Cricket Agent Common Module

Shared infrastructure for the question-answering pipeline.
"""

from .config import CricketConfig, load_config
from .document_store import DocumentStore, StoreError
from .llm_client import LLMClient, build_llm_client

__all__ = [
    "CricketConfig",
    "load_config",
    "DocumentStore",
    "StoreError",
    "LLMClient",
    "build_llm_client",
]
