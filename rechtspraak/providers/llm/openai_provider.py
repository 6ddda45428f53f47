"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When ``openai_base_url`` is configured the client talks to that endpoint
instead of api.openai.com, which covers most hosted OpenAI-compatible
model servers.
"""

from __future__ import annotations

import openai
import structlog

from rechtspraak.config.settings import Settings
from rechtspraak.interfaces.llm_provider import ILLMProvider
from rechtspraak.utils.errors import ProviderError, RateLimitedError

logger = structlog.get_logger(logger_name=__name__)

# Nucleus sampling applied to every completion.
_TOP_P = 0.9


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    Uses ``gpt-4o-mini`` by default; override with ``OPENAI_TEXT_MODEL``.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.openai_timeout_seconds, connect=5.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a text completion via the chat completions API.

        An empty *system_prompt* sends only the user message.
        """
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        try:
            response = await self._client.chat.completions.create(
                model=self._text_model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                top_p=_TOP_P,
            )
        except openai.APITimeoutError as exc:
            raise ProviderError(
                message=f"{self._provider_label} request timed out: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.RateLimitError as exc:
            raise RateLimitedError(
                message=f"{self._provider_label} rate limit: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise ProviderError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise ProviderError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def get_model_name(self) -> str:
        return self._text_model

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
