"""Abstract base class for generative (LLM) service providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAILLMProvider (rechtspraak/providers/llm/)
class ILLMProvider(ABC):
    """Contract for text-generation services.

    The chat orchestrator calls :meth:`complete` twice per turn: once for
    the grounded answer and once (best-effort) for follow-up questions.
    """

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a completion for the given prompts.

        Parameters
        ----------
        system_prompt:
            Task-framing instruction.  May be empty.
        user_prompt:
            The user-side message, including any retrieved context.
        temperature:
            Sampling temperature.
        max_tokens:
            Upper bound on generated tokens.

        Returns
        -------
        str
            The generated text.

        Raises
        ------
        rechtspraak.utils.errors.ProviderError
            If the API call fails or returns no content.
        """

    @abstractmethod
    def get_model_name(self) -> str:
        """Return the model identifier used for completions."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""
