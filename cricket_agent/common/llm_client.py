"""
Provider-agnostic LLM client for the cricket pipeline.

Supports OpenRouter (OpenAI-compatible), OpenAI, Anthropic and Google Gemini
with a shared text-generation interface.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import LLMConfig

logger = logging.getLogger("cricket_agent.common.llm_client")

OPENROUTER_HEADERS = {
    "HTTP-Referer": "http://localhost:3001",
    "X-Title": "Cricket Data Agent",
}


class LLMClient:
    """Unified text generation client across LLM providers."""

    def __init__(
        self,
        provider: str = "openrouter",
        model: str = "",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 20.0,
        max_tokens: int = 500,
    ) -> None:
        self.provider = (provider or "openrouter").lower()
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._client = None
        self._google_model = None

        if self.provider not in ("openrouter", "openai", "anthropic", "google"):
            logger.warning("Unsupported LLM provider: %s", self.provider)
            return

        if not api_key:
            logger.info("%s API key not provided, LLM client unavailable", self.provider)
            return

        if self.provider in ("openrouter", "openai"):
            try:
                from openai import OpenAI

                if self.provider == "openrouter":
                    self._client = OpenAI(
                        api_key=api_key,
                        base_url=base_url or "https://openrouter.ai/api/v1",
                        default_headers=OPENROUTER_HEADERS,
                    )
                else:
                    self._client = OpenAI(api_key=api_key)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize %s client: %s", self.provider, e)
            return

        if self.provider == "anthropic":
            try:
                import anthropic

                self._client = anthropic.Anthropic(api_key=api_key)
            except ImportError:
                logger.warning("anthropic package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Anthropic client: %s", e)
            return

        try:
            import google.generativeai as genai

            genai.configure(api_key=api_key)
            self._client = genai  # Store the module, not a model instance
        except ImportError:
            logger.warning("google-generativeai package not installed")
        except Exception as e:
            logger.warning("Failed to initialize Gemini client: %s", e)

    @classmethod
    def from_config(cls, llm_config: LLMConfig) -> "LLMClient":
        return cls(
            provider=llm_config.provider,
            model=llm_config.model,
            api_key=llm_config.api_key,
            base_url=llm_config.openrouter_base_url,
            timeout=llm_config.timeout,
            max_tokens=llm_config.max_tokens,
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def generate(
        self,
        prompt: str,
        *,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> str:
        if not self.is_available:
            raise RuntimeError("LLM client is not available")

        max_tokens = max_tokens or self.max_tokens
        timeout = timeout or self.timeout

        if self.provider in ("openrouter", "openai"):
            response = self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=0,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout,
            )
            return (response.choices[0].message.content or "").strip()

        if self.provider == "anthropic":
            response = self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=0,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout,
            )
            return response.content[0].text.strip()

        if self._google_model is None:
            self._google_model = self._client.GenerativeModel(model_name=self.model)
        model = self._google_model
        response = model.generate_content(
            prompt,
            generation_config={"max_output_tokens": max_tokens, "temperature": 0},
            request_options={"timeout": timeout},
        )
        return response.text.strip()


def build_llm_client(llm_config: LLMConfig) -> Optional[LLMClient]:
    """Build the shared LLM client, or None when no model is configured.

    Callers treat None as "use the heuristic / fallback path".
    """
    if not llm_config.is_configured:
        logger.info("No %s credential configured, running without an LLM", llm_config.provider)
        return None
    client = LLMClient.from_config(llm_config)
    if not client.is_available:
        return None
    logger.info("LLM client ready (provider=%s, model=%s)", client.provider, client.model)
    return client
