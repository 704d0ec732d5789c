"""Unified LLM client — tries OpenAI first, falls back to Anthropic."""

import logging

from openai import AsyncOpenAI
import anthropic

from meetpoint.config import settings

logger = logging.getLogger(__name__)


class LLMClient:
    """Unified async LLM client with OpenAI primary + Anthropic fallback."""

    def __init__(
        self,
        openai_api_key: str | None = None,
        anthropic_api_key: str | None = None,
        timeout: float | None = None,
    ):
        self._openai = None
        self._anthropic = None

        openai_key = settings.openai_api_key if openai_api_key is None else openai_api_key
        anthropic_key = settings.anthropic_api_key if anthropic_api_key is None else anthropic_api_key
        timeout = settings.llm_timeout_seconds if timeout is None else timeout

        if openai_key:
            self._openai = AsyncOpenAI(api_key=openai_key, timeout=timeout, max_retries=0)
        if anthropic_key:
            self._anthropic = anthropic.AsyncAnthropic(api_key=anthropic_key, timeout=timeout, max_retries=0)

    @property
    def available(self) -> bool:
        return self._openai is not None or self._anthropic is not None

    async def complete(
        self,
        system: str,
        user: str,
        *,
        max_tokens: int = 1000,
        temperature: float = 0,
        json_mode: bool = False,
    ) -> str:
        """Get a completion from the best available LLM.

        Args:
            system: System prompt
            user: User message
            max_tokens: Max output tokens
            temperature: Sampling temperature
            json_mode: If True, force JSON output (OpenAI response_format)

        Returns:
            Raw text response from the LLM.

        Raises:
            RuntimeError if both providers fail or none is configured.
        """
        errors = []
        chat_messages = [{"role": "user", "content": user}]

        # Try OpenAI first
        if self._openai:
            try:
                openai_messages = [{"role": "system", "content": system}] + chat_messages
                kwargs: dict = {
                    "model": settings.openai_model,
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                    "messages": openai_messages,
                }
                if json_mode:
                    kwargs["response_format"] = {"type": "json_object"}
                response = await self._openai.chat.completions.create(**kwargs)
                return (response.choices[0].message.content or "").strip()
            except Exception as e:
                errors.append(f"OpenAI: {e}")
                logger.warning(f"OpenAI failed, trying Anthropic: {e}")

        # Fallback to Anthropic
        if self._anthropic:
            try:
                response = await self._anthropic.messages.create(
                    model=settings.anthropic_model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    system=system,
                    messages=chat_messages,
                )
                return response.content[0].text.strip()
            except Exception as e:
                errors.append(f"Anthropic: {e}")
                logger.warning(f"Anthropic also failed: {e}")

        if not errors:
            errors.append("no provider configured")
        raise RuntimeError(f"All LLM providers failed: {'; '.join(errors)}")


# Singleton
llm_client = LLMClient()
