"""Lifecycle rules for chat sessions: message quota and idle expiry."""

from dataclasses import dataclass

from .config import (
    DEFAULT_IDLE_TIMEOUT_SECONDS,
    DEFAULT_MAX_MESSAGES,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    Settings,
)
from .sessions import Session


@dataclass(frozen=True)
class SessionPolicy:
    max_messages: int = DEFAULT_MAX_MESSAGES
    max_idle: float = DEFAULT_IDLE_TIMEOUT_SECONDS
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS

    def __post_init__(self):
        if self.max_messages < 0:
            raise ValueError(f"max_messages must not be negative, got {self.max_messages}")
        if self.max_idle <= 0:
            raise ValueError(f"max_idle must be positive, got {self.max_idle}")
        if self.sweep_interval <= 0:
            raise ValueError(f"sweep_interval must be positive, got {self.sweep_interval}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionPolicy":
        return cls(
            max_messages=settings.max_messages,
            max_idle=settings.idle_timeout_seconds,
            sweep_interval=settings.sweep_interval_seconds,
        )

    @staticmethod
    def is_quota_exceeded(session: Session) -> bool:
        return session.message_count >= session.max_messages

    @staticmethod
    def can_exchange(session: Session) -> bool:
        """Whether one more user/AI pair still fits in the session's quota.

        With an odd quota (the default is 15) the last slot can never be
        used, so this turns false one exchange before ``is_quota_exceeded``.
        """
        return session.message_count + 2 <= session.max_messages

    def is_stale(self, session: Session, now: float, max_idle: float | None = None) -> bool:
        limit = self.max_idle if max_idle is None else max_idle
        return now - session.last_active_at > limit

    @staticmethod
    def remaining_messages(session: Session) -> int:
        """Messages still usable, counted in whole user/AI pairs."""
        return max(0, (session.max_messages - session.message_count) // 2 * 2)
