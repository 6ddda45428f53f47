"""In-memory, per-session conversation history.

Sessions are created lazily on first :meth:`ConversationStore.get` and live
until :meth:`ConversationStore.clear`.  Each session keeps at most
``2 * history_limit`` messages; appends happen in user/assistant pairs and
the oldest pair is evicted first.

The store is an explicit object built at startup (``main._build_all``)
and passed to the chat service -- there is no module-level session table.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog

from rechtspraak.models.conversation import ChatStats, ConversationSession, Message, MessageRole

logger = structlog.get_logger(logger_name=__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class ConversationStore:
    """Maps session ids to bounded message histories.

    Parameters
    ----------
    history_limit:
        Maximum number of user/assistant pairs retained per session.
    active_window:
        A session counts as active in :meth:`stats` when its last activity
        falls inside this window.
    """

    def __init__(
        self,
        history_limit: int = 10,
        active_window: timedelta = timedelta(hours=1),
    ) -> None:
        if history_limit <= 0:
            raise ValueError("history_limit must be positive")
        self._history_limit = history_limit
        self._active_window = active_window
        self._sessions: dict[str, ConversationSession] = {}

    @property
    def history_limit(self) -> int:
        return self._history_limit

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, session_id: str) -> ConversationSession:
        """Return the session, creating an empty one if it does not exist."""
        session = self._sessions.get(session_id)
        if session is None:
            session = ConversationSession(session_id=session_id)
            self._sessions[session_id] = session
            logger.debug("conversation_session_created", session_id=session_id)
        return session

    def peek(self, session_id: str) -> ConversationSession | None:
        """Return the session if it exists, without creating it."""
        return self._sessions.get(session_id)

    def exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def append(self, session_id: str, user_text: str, assistant_text: str) -> ConversationSession:
        """Append one user/assistant pair and enforce the retention cap."""
        session = self.get(session_id)
        now = _utcnow()
        session.messages.append(Message(role=MessageRole.USER, content=user_text, timestamp=now))
        session.messages.append(
            Message(role=MessageRole.ASSISTANT, content=assistant_text, timestamp=_utcnow())
        )

        cap = 2 * self._history_limit
        if len(session.messages) > cap:
            evicted = len(session.messages) - cap
            del session.messages[:evicted]
            logger.debug("conversation_history_trimmed", session_id=session_id, evicted=evicted)

        session.last_activity = _utcnow()
        return session

    def clear(self, session_id: str) -> bool:
        """Remove a session.  Returns ``False`` if it never existed."""
        removed = self._sessions.pop(session_id, None) is not None
        logger.info("conversation_cleared", session_id=session_id, found=removed)
        return removed

    def stats(self, now: datetime | None = None) -> ChatStats:
        """Summarise all sessions."""
        sessions = list(self._sessions.values())
        if not sessions:
            return ChatStats()

        reference = now or _utcnow()
        cutoff = reference - self._active_window
        total_messages = sum(len(s.messages) for s in sessions)
        return ChatStats(
            total_sessions=len(sessions),
            active_sessions=sum(1 for s in sessions if s.last_activity > cutoff),
            total_messages=total_messages,
            average_messages_per_session=round(total_messages / len(sessions)),
            oldest_session=min(s.created_at for s in sessions),
            newest_session=max(s.created_at for s in sessions),
        )

    def reset(self) -> None:
        """Drop every session."""
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
