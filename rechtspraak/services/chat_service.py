"""Retrieval-augmented chat over ingested Dutch case law.

One chat turn runs these steps in order:

  1. VALIDATE   -- a blank message is rejected before any provider call.
  2. EMBED      -- the message becomes a query vector.
  3. RETRIEVE   -- the vector index returns the top-k chunks, optionally
                   restricted to one document.
  4. FILTER     -- chunks scoring under the relevance threshold are dropped.
  5. CONTEXT    -- surviving chunks are rendered as numbered ``BRON`` blocks,
                   capped at ``max_context_length`` characters.
  6. ANSWER     -- the LLM answers with the Dutch legal-assistant prompt.
  7. FOLLOW-UPS -- a second, best-effort LLM call suggests up to three
                   follow-up questions; any failure yields an empty list.
  8. CITE       -- the surviving chunks become numbered citations.
  9. REMEMBER   -- the user/assistant pair is appended to the session.

A failure in steps 1-6 propagates and leaves the session untouched.  Turns
for the same session id are serialized by a per-session lock so turn
numbers never collide.
"""

from __future__ import annotations

import asyncio
import random
import re
import string
import time

import structlog

from rechtspraak.interfaces.llm_provider import ILLMProvider
from rechtspraak.models.chat import BatchQueryResult, ChatOptions, ChatResult
from rechtspraak.models.rag import SearchResult
from rechtspraak.services.citation_service import (
    UNKNOWN_DOCUMENT_NAME,
    CitationService,
    score_percentage,
)
from rechtspraak.services.conversation_store import ConversationStore
from rechtspraak.services.embedding_client import EmbeddingClient
from rechtspraak.services.relevance_filter import filter_relevant
from rechtspraak.services.vector_index import VectorIndex
from rechtspraak.utils.errors import ValidationError

logger = structlog.get_logger(logger_name=__name__)

NO_CONTEXT_MARKER = "Geen relevante rechtspraak gevonden in de database."

_FOLLOW_UP_LINE = re.compile(r"^\d+\.")
_FOLLOW_UP_PREFIX = re.compile(r"^\d+\.\s*")
_MAX_FOLLOW_UPS = 3


class ChatService:
    """Answers questions about the ingested case law.

    Parameters
    ----------
    embedder:
        Client used to embed the user's message.
    index:
        Vector index searched for context.
    llm:
        Text-generation provider for answers and follow-up questions.
    conversations:
        Session history store; written only after a successful answer.
    citations:
        Citation builder.  A default instance is created when omitted.
    max_search_results:
        Default ``top_k`` and cap on relevant results.
    min_relevance_score:
        Default similarity threshold for context chunks.
    max_context_length:
        Character budget for the rendered context block.
    answer_temperature:
        Sampling temperature for the answer call.
    answer_max_tokens:
        Token budget for the answer call.
    batch_delay:
        Seconds slept between queries in :meth:`process_batch`.
    """

    _SYSTEM_PROMPT = (
        "Je bent een Nederlandse juridische assistent die specialiseert in het analyseren "
        "van rechtspraak en juridische documenten. Je taak is om gebruikers te helpen bij "
        "het begrijpen van Nederlandse wet- en regelgeving op basis van de beschikbare "
        "rechtspraak.\n\n"
        "Belangrijke richtlijnen:\n"
        "- Geef altijd antwoorden in het Nederlands\n"
        "- Baseer je antwoorden op de verstrekte context uit de rechtspraak\n"
        "- Verwijs naar specifieke uitspraken wanneer mogelijk\n"
        "- Maak duidelijk wanneer informatie beperkt is of je geen definitief antwoord "
        "kunt geven\n"
        "- Gebruik juridische terminologie correct en leg complexe concepten uit\n"
        "- Bied praktische inzichten maar geef geen specifiek juridisch advies\n"
        "- Verwijs gebruikers naar een advocaat voor specifieke juridische kwesties\n\n"
        "Formatteer je antwoorden professioneel en gestructureerd met:\n"
        "- Duidelijke hoofdpunten\n"
        "- Citaten uit relevante uitspraken\n"
        "- Bronverwijzingen naar documentnamen\n"
        "- Praktische context waar relevant"
    )

    def __init__(
        self,
        embedder: EmbeddingClient,
        index: VectorIndex,
        llm: ILLMProvider,
        conversations: ConversationStore,
        citations: CitationService | None = None,
        max_search_results: int = 5,
        min_relevance_score: float = 0.3,
        max_context_length: int = 8000,
        answer_temperature: float = 0.3,
        answer_max_tokens: int = 1000,
        batch_delay: float = 0.1,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._llm = llm
        self._conversations = conversations
        self._citations = citations or CitationService()
        self._max_search_results = max_search_results
        self._min_relevance_score = min_relevance_score
        self._max_context_length = max_context_length
        self._answer_temperature = answer_temperature
        self._answer_max_tokens = answer_max_tokens
        self._batch_delay = batch_delay
        self._session_locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def handle(
        self,
        session_id: str,
        user_text: str,
        options: ChatOptions | None = None,
    ) -> ChatResult:
        """Run one chat turn for *session_id*.

        Raises
        ------
        ValidationError
            If *user_text* is blank.
        ProviderError
            If embedding, retrieval, or answer generation fails.
        """
        if not user_text or not user_text.strip():
            raise ValidationError(message="Message is required")

        options = options or ChatOptions()
        lock = self._session_locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            return await self._handle_locked(session_id, user_text, options)

    async def process_batch(
        self,
        queries: list[str],
        options: ChatOptions | None = None,
    ) -> list[BatchQueryResult]:
        """Answer each query in its own throwaway session.

        A failing query is reported in its entry and does not stop the
        batch.  The session and its lock are discarded once the query is
        answered.
        """
        results: list[BatchQueryResult] = []
        for position, query in enumerate(queries):
            if position > 0 and self._batch_delay > 0:
                await asyncio.sleep(self._batch_delay)

            session_id = _batch_session_id()
            try:
                result = await self.handle(session_id, query, options)
            except Exception as exc:  # noqa: BLE001
                logger.warning("batch_query_failed", query_index=position, error=str(exc))
                results.append(BatchQueryResult(query=query, success=False, error=str(exc)))
                continue
            finally:
                self._conversations.clear(session_id)
                self.forget_session(session_id)
            results.append(BatchQueryResult(query=query, success=True, result=result))

        logger.info(
            "batch_processed",
            total=len(queries),
            succeeded=sum(1 for r in results if r.success),
        )
        return results

    def forget_session(self, session_id: str) -> None:
        """Drop the lock kept for *session_id*."""
        lock = self._session_locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._session_locks[session_id]

    @property
    def model_name(self) -> str:
        return self._llm.get_model_name()

    # ------------------------------------------------------------------
    # Prompt construction
    # ------------------------------------------------------------------

    def build_context(self, results: list[SearchResult]) -> str:
        """Render *results* as numbered sources within the character budget."""
        if not results:
            return NO_CONTEXT_MARKER

        header = "BESCHIKBARE RECHTSPRAAK:\n"
        footer = (
            "\n\nGebruik deze uitspraken als basis voor je antwoord en verwijs naar de "
            "specifieke bronnen."
        )
        budget = self._max_context_length - len(header) - len(footer)

        parts: list[str] = []
        used = 0
        for position, result in enumerate(results, start=1):
            part = (
                f"BRON {position} (Relevantie: {score_percentage(result.score)}%):\n"
                f"Document: {result.document_name or UNKNOWN_DOCUMENT_NAME}\n"
                f"Uitspraak: {result.text}"
            )
            separator = 2 if parts else 0
            if used + separator + len(part) > budget:
                if not parts:
                    # A single oversized source is cut rather than dropped.
                    parts.append(part[: max(budget, 0)])
                break
            parts.append(part)
            used += separator + len(part)

        if len(parts) < len(results):
            logger.debug(
                "chat_context_truncated",
                sources_total=len(results),
                sources_kept=len(parts),
            )
        return header + "\n\n".join(parts) + footer

    @staticmethod
    def build_user_prompt(user_text: str, context: str) -> str:
        return (
            f"{context}\n\n"
            f"VRAAG VAN DE GEBRUIKER:\n{user_text}\n\n"
            "Geef een uitgebreid en goed onderbouwd antwoord op basis van de beschikbare "
            "rechtspraak hierboven."
        )

    @staticmethod
    def build_follow_up_prompt(user_text: str, context: str) -> str:
        return (
            "Gebaseerd op de volgende vraag en rechtspraak context, genereer 3 relevante "
            "vervolgvragen die de gebruiker zou kunnen stellen:\n\n"
            f'Oorspronkelijke vraag: "{user_text}"\n\n'
            f"{context}\n\n"
            "Genereer 3 korte, specifieke vervolgvragen die logisch voortvloeien uit de "
            "context. Geef alleen de vragen terug, genummerd 1-3."
        )

    @staticmethod
    def parse_follow_ups(text: str) -> list[str]:
        """Pull numbered lines (``1. ...``) out of an LLM reply."""
        questions: list[str] = []
        for line in text.splitlines():
            stripped = line.strip()
            if not _FOLLOW_UP_LINE.match(stripped):
                continue
            question = _FOLLOW_UP_PREFIX.sub("", stripped).strip()
            if question:
                questions.append(question)
        return questions[:_MAX_FOLLOW_UPS]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _handle_locked(
        self,
        session_id: str,
        user_text: str,
        options: ChatOptions,
    ) -> ChatResult:
        existing = self._conversations.peek(session_id)
        turn_number = (existing.message_count if existing else 0) // 2 + 1

        max_results = options.max_results or self._max_search_results
        min_score = (
            options.min_relevance_score
            if options.min_relevance_score is not None
            else self._min_relevance_score
        )

        vector = await self._embedder.embed_query(user_text)
        results = await self._index.query(vector, max_results, filter=options.to_filter())
        relevant = filter_relevant(results, min_score, max_results)

        context = self.build_context(relevant)
        answer = await self._llm.complete(
            system_prompt=self._SYSTEM_PROMPT,
            user_prompt=self.build_user_prompt(user_text, context),
            temperature=self._answer_temperature,
            max_tokens=self._answer_max_tokens,
        )

        follow_ups = await self._follow_ups(user_text, context)
        citations = self._citations.build(relevant)

        self._conversations.append(session_id, user_text, answer)

        logger.info(
            "chat_turn_completed",
            session_id=session_id,
            turn_number=turn_number,
            search_results=len(results),
            relevant_results=len(relevant),
            follow_ups=len(follow_ups),
        )
        return ChatResult(
            session_id=session_id,
            user_message=user_text,
            answer=answer,
            citations=citations,
            follow_ups=follow_ups,
            turn_number=turn_number,
            search_results_count=len(results),
            relevant_results_count=len(relevant),
            model=self._llm.get_model_name(),
        )

    async def _follow_ups(self, user_text: str, context: str) -> list[str]:
        try:
            reply = await self._llm.complete(
                system_prompt="",
                user_prompt=self.build_follow_up_prompt(user_text, context),
                temperature=0.7,
                max_tokens=200,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("follow_up_generation_failed", error=str(exc))
            return []
        return self.parse_follow_ups(reply)


def _batch_session_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))  # noqa: S311
    return f"batch_{int(time.time() * 1000)}_{suffix}"
