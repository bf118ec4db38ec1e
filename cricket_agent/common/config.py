"""
Configuration Management for the Cricket Stats Agent

Loads configuration from ~/.cricket-agent/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

logger = logging.getLogger("cricket_agent.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".cricket-agent"
CONFIG_PATH = CONFIG_DIR / "config.json"

SUPPORTED_PROVIDERS = ("openrouter", "openai", "anthropic", "google")


@dataclass
class LLMConfig:
    """LLM provider configuration shared by every pipeline stage"""
    provider: str = "openrouter"
    openrouter_api_key: str = ""
    openrouter_model: str = "google/gemini-3-flash-preview"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash"
    timeout: float = 20.0  # seconds, applied to every model call
    max_tokens: int = 500
    summary_max_tokens: int = 300

    @property
    def api_key(self) -> str:
        """API key of the selected provider ("" when not configured)"""
        return getattr(self, f"{self.provider}_api_key", "") or ""

    @property
    def model(self) -> str:
        return getattr(self, f"{self.provider}_model", "") or ""

    @property
    def is_configured(self) -> bool:
        return self.provider in SUPPORTED_PROVIDERS and bool(self.api_key)


@dataclass
class MongoConfig:
    """Player statistics / conversation store configuration"""
    uri: str = "mongodb://localhost:27017"
    database: str = "cricket"
    server_selection_timeout_ms: int = 5000


@dataclass
class MemoryConfig:
    """Conversation memory and compaction policy"""
    compaction_threshold: int = 20  # compact once a user has more turns than this
    keep_recent: int = 5  # turns left untouched by compaction
    context_turns: int = 10  # recent turns rendered into the memory context
    summary_max_words: int = 200
    history_limit: int = 50


@dataclass
class QueryConfig:
    """Bounds applied by the query sanitizer and fallback synthesizer"""
    min_limit: int = 1
    max_limit: int = 50
    default_limit: int = 5


@dataclass
class FormatterConfig:
    """Answer formatter configuration"""
    mode: str = "deterministic"  # "deterministic" or "llm"


@dataclass
class CricketConfig:
    """Main agent configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    mongo: MongoConfig = field(default_factory=MongoConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    formatter: FormatterConfig = field(default_factory=FormatterConfig)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    defaults = LLMConfig()
    return LLMConfig(
        provider=str(llm_data.get("provider", defaults.provider)).lower(),
        openrouter_api_key=llm_data.get("openrouter_api_key", ""),
        openrouter_model=llm_data.get("openrouter_model", defaults.openrouter_model),
        openrouter_base_url=llm_data.get("openrouter_base_url", defaults.openrouter_base_url),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", defaults.openai_model),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", defaults.anthropic_model),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", defaults.google_model),
        timeout=float(llm_data.get("timeout", defaults.timeout)),
        max_tokens=int(llm_data.get("max_tokens", defaults.max_tokens)),
        summary_max_tokens=int(llm_data.get("summary_max_tokens", defaults.summary_max_tokens)),
    )


def _parse_mongo_config(data: dict) -> MongoConfig:
    """Parse mongo section from config dict"""
    mongo_data = data.get("mongo", {})
    return MongoConfig(
        uri=mongo_data.get("uri", "mongodb://localhost:27017"),
        database=mongo_data.get("database", "cricket"),
        server_selection_timeout_ms=int(mongo_data.get("server_selection_timeout_ms", 5000)),
    )


def _parse_memory_config(data: dict) -> MemoryConfig:
    """Parse memory section from config dict"""
    memory_data = data.get("memory", {})
    return MemoryConfig(
        compaction_threshold=int(memory_data.get("compaction_threshold", 20)),
        keep_recent=int(memory_data.get("keep_recent", 5)),
        context_turns=int(memory_data.get("context_turns", 10)),
        summary_max_words=int(memory_data.get("summary_max_words", 200)),
        history_limit=int(memory_data.get("history_limit", 50)),
    )


def _parse_query_config(data: dict) -> QueryConfig:
    """Parse query section from config dict"""
    query_data = data.get("query", {})
    return QueryConfig(
        min_limit=int(query_data.get("min_limit", 1)),
        max_limit=int(query_data.get("max_limit", 50)),
        default_limit=int(query_data.get("default_limit", 5)),
    )


def _parse_formatter_config(data: dict) -> FormatterConfig:
    formatter_data = data.get("formatter", {})
    return FormatterConfig(mode=str(formatter_data.get("mode", "deterministic")).lower())


def load_config(config_path: Optional[Path] = None) -> CricketConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.cricket-agent/config.json)
    3. Default values
    """
    config = CricketConfig()
    path = Path(config_path) if config_path else CONFIG_PATH

    # Load from config file if exists
    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.mongo = _parse_mongo_config(data)
            config.memory = _parse_memory_config(data)
            config.query = _parse_query_config(data)
            config.formatter = _parse_formatter_config(data)
        except (json.JSONDecodeError, IOError, ValueError, TypeError) as e:
            logger.warning("Failed to load config file %s: %s", path, e)

    # LLM env var overrides
    _env_llm_map = {
        "OPENROUTER_API_KEY": "openrouter_api_key",
        "GEMINI_MODEL": "openrouter_model",
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_MODEL": "openai_model",
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)

    if os.getenv("CRICKET_LLM_PROVIDER"):
        config.llm.provider = os.getenv("CRICKET_LLM_PROVIDER").lower()
    if os.getenv("CRICKET_LLM_TIMEOUT"):
        config.llm.timeout = float(os.getenv("CRICKET_LLM_TIMEOUT"))

    if os.getenv("MONGODB_URI"):
        config.mongo.uri = os.getenv("MONGODB_URI")
    if os.getenv("MONGODB_DATABASE"):
        config.mongo.database = os.getenv("MONGODB_DATABASE")

    if os.getenv("CRICKET_FORMATTER_MODE"):
        config.formatter.mode = os.getenv("CRICKET_FORMATTER_MODE").lower()

    return config
