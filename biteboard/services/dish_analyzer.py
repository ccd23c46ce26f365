"""
Dish Analyzer.

Thin wrapper around Claude for the batch dish extraction call. One request,
no streaming, bounded by a timeout. Any failure surfaces as GenerationError
so the caller can degrade the whole batch.
"""

import asyncio
from typing import Optional

import anthropic
import structlog

from biteboard.config.settings import Settings, get_settings
from biteboard.core.exceptions import ConfigurationError, GenerationError
from biteboard.services.prompt_builder import SYSTEM_PROMPT

logger = structlog.get_logger(__name__)


class DishAnalyzer:
    """
    Sends batch prompts to Claude and returns the raw response text.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        settings = settings or get_settings()
        if client is None:
            if not settings.anthropic_api_key:
                raise ConfigurationError(
                    "Anthropic API key not configured",
                    config_key="anthropic_api_key",
                )
            # One attempt per batch; the wait_for timeout covers the whole call
            client = anthropic.AsyncAnthropic(
                api_key=settings.anthropic_api_key.get_secret_value(),
                max_retries=0,
            )
        self.client = client
        self.model = settings.analysis_model
        self.max_tokens = settings.analysis_max_tokens
        self.timeout = settings.analysis_timeout_seconds

    async def generate_json(self, prompt: str) -> str:
        """
        Run one batch prompt.

        The system prompt constrains the answer to a bare JSON object.

        Raises:
            GenerationError: On API errors, timeout, or an empty response.
        """
        try:
            response = await asyncio.wait_for(
                self.client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=SYSTEM_PROMPT,
                    messages=[{"role": "user", "content": prompt}],
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(
                f"Model call timed out after {self.timeout:.0f}s",
                {"model": self.model},
            ) from e
        except anthropic.APIError as e:
            raise GenerationError(
                f"Model call failed: {e}",
                {"model": self.model, "error_type": type(e).__name__},
            ) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise GenerationError("Model returned an empty response", {"model": self.model})

        logger.debug(
            "dish_analysis_generated",
            model=self.model,
            response_chars=len(text),
            stop_reason=getattr(response, "stop_reason", None),
        )
        return text
