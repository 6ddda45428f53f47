"""LLM provider adapters.

OpenAILLMProvider implements ILLMProvider (rechtspraak/interfaces/llm_provider.py)
against api.openai.com or any OpenAI-compatible endpoint.  main.py builds it
when ``LLM_PROVIDER=openai`` and stores it on ``app.state``.
"""

from rechtspraak.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
