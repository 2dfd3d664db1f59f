"""
In-memory session store for video chat conversations.

Sessions live only as long as the process. Every mutation happens under a
single lock that is never held across network I/O: callers read a snapshot
with ``get``, talk to the language model, then commit the result with
``append_exchange``.
"""

import logging
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

logger = logging.getLogger(__name__)

USER = "user"
AI = "AI"

MAX_ID_ATTEMPTS = 8
SWEEP_BATCH_SIZE = 500


class SessionError(Exception):
    def __init__(self, session_id: str | None, message: str):
        super().__init__(message)
        self.session_id = session_id


class SessionNotFound(SessionError):
    def __init__(self, session_id: str):
        super().__init__(session_id, "Invalid session id or session has ended.")


class QuotaExceeded(SessionError):
    def __init__(self, session_id: str):
        super().__init__(session_id, "Message limit reached for this chat session.")


class IdentifierExhaustion(SessionError):
    def __init__(self, attempts: int):
        super().__init__(None, f"Could not allocate a unique session id after {attempts} attempts.")


@dataclass(frozen=True)
class HistoryEntry:
    speaker: str  # USER or AI
    text: str
    timestamp: float


@dataclass
class Session:
    id: str
    context: Any
    max_messages: int
    created_at: float
    last_active_at: float
    history: list[HistoryEntry] = field(default_factory=list)
    message_count: int = 0


def new_session_id() -> str:
    """128 random bits, hex encoded. Ids are bearer tokens, so they must be unguessable."""
    return secrets.token_hex(16)


class SessionStore:
    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = new_session_id,
        max_id_attempts: int = MAX_ID_ATTEMPTS,
    ):
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._id_factory = id_factory
        self._max_id_attempts = max_id_attempts

    def create(self, context: Any, max_messages: int) -> str:
        if not isinstance(max_messages, int) or isinstance(max_messages, bool):
            raise TypeError(f"max_messages must be an integer, got {type(max_messages).__name__}")
        if max_messages < 0:
            raise ValueError(f"max_messages must not be negative, got {max_messages}")

        with self._lock:
            for _ in range(self._max_id_attempts):
                session_id = self._id_factory()
                if session_id not in self._sessions:
                    break
            else:
                raise IdentifierExhaustion(self._max_id_attempts)

            now = self._clock()
            self._sessions[session_id] = Session(
                id=session_id,
                context=context,
                max_messages=max_messages,
                created_at=now,
                last_active_at=now,
            )
            live = len(self._sessions)

        logger.info("session=%s created (max_messages=%d, live=%d)", session_id[:8], max_messages, live)
        return session_id

    def get(self, session_id: str) -> Session:
        """Return a snapshot of the session. Does not count as activity."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            return replace(session, history=list(session.history))

    def append_exchange(self, session_id: str, user_text: str, response_text: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            if session.message_count + 2 > session.max_messages:
                raise QuotaExceeded(session_id)

            now = self._clock()
            session.history.append(HistoryEntry(USER, user_text, now))
            session.history.append(HistoryEntry(AI, response_text, now))
            session.message_count += 2
            session.last_active_at = now
            snapshot = replace(session, history=list(session.history))

        logger.debug(
            "session=%s exchange stored (%d/%d)",
            session_id[:8], snapshot.message_count, snapshot.max_messages,
        )
        return snapshot

    def remove(self, session_id: str) -> list[HistoryEntry]:
        with self._lock:
            session = self._sessions.pop(session_id, None)
            live = len(self._sessions)
        if session is None:
            raise SessionNotFound(session_id)

        logger.info("session=%s ended after %d messages (live=%d)", session_id[:8], session.message_count, live)
        return session.history

    def sweep_stale(self, max_idle: float, now: float | None = None) -> int:
        """Remove every session idle for longer than ``max_idle`` seconds.

        Candidates are found in one read-only pass, then deleted batch by
        batch with the lock released in between. Each candidate is re-checked
        before deletion, so a session that became active mid-sweep is kept.
        """
        if now is None:
            now = self._clock()

        with self._lock:
            candidates = [sid for sid, s in self._sessions.items() if now - s.last_active_at > max_idle]

        removed = 0
        for start in range(0, len(candidates), SWEEP_BATCH_SIZE):
            with self._lock:
                for sid in candidates[start:start + SWEEP_BATCH_SIZE]:
                    session = self._sessions.get(sid)
                    if session is not None and now - session.last_active_at > max_idle:
                        del self._sessions[sid]
                        removed += 1

        if removed:
            logger.info("Swept %d idle session(s), %d still live", removed, self.size())
        return removed

    def clear(self) -> int:
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
        return count

    def size(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
