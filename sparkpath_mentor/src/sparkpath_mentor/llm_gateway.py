"""
LLM Gateway

Single text-completion call against the OpenAI chat API.
Raises UpstreamUnavailable on any failure; retry policy belongs to the caller.
"""

import asyncio
import logging
from typing import Optional

from openai import AsyncOpenAI

from sparkpath_mentor.config import Settings, get_settings
from sparkpath_mentor.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class LLMGateway:
    """Wraps one chat completion: prompt (+ optional system instructions) in, text out."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings or get_settings()
        if client is None:
            if not self.settings.openai_api_key:
                raise ValueError("OPENAI_API_KEY not found in environment variables")
            client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        self.llm_client = client
        self.model = self.settings.openai_model
        self.timeout = self.settings.llm_timeout_seconds

    async def complete(
        self,
        prompt: str,
        system_instructions: Optional[str] = None,
        max_tokens: int = 2000,
    ) -> str:
        """
        Run one completion.

        Args:
            prompt: User-turn prompt text
            system_instructions: Optional system prompt
            max_tokens: Completion token limit

        Returns:
            The completion text (stripped)

        Raises:
            UpstreamUnavailable: remote error, timeout, or empty/undecodable reply
        """
        messages = []
        if system_instructions:
            messages.append({"role": "system", "content": system_instructions})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await asyncio.wait_for(
                self.llm_client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    max_tokens=max_tokens,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"⏱️ [LLMGateway] Completion timed out after {self.timeout}s")
            raise UpstreamUnavailable(f"LLM call timed out after {self.timeout}s") from e
        except Exception as e:
            logger.warning(f"⚠️ [LLMGateway] Completion failed: {e}")
            raise UpstreamUnavailable(f"LLM call failed: {e}") from e

        try:
            text = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise UpstreamUnavailable("LLM response could not be decoded") from e

        if not isinstance(text, str) or not text.strip():
            raise UpstreamUnavailable("LLM response contained no text")

        return text.strip()
