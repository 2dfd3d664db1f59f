"""
Runtime settings read from the environment.

Entry points call ``load_dotenv()`` first, so a local ``.env`` file works the
same way as exported variables.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

DEFAULT_MAX_MESSAGES = 15
DEFAULT_IDLE_TIMEOUT_SECONDS = 60 * 60  # 1 hour
DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60
DEFAULT_CHAT_MODEL = "gpt-4o-mini"
DEFAULT_LLM_TIMEOUT_SECONDS = 60.0
DEFAULT_RATE_LIMIT_MAX = 100
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 10 * 60


class ConfigError(ValueError):
    """An environment variable holds a value that cannot be used."""


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    max_messages: int = DEFAULT_MAX_MESSAGES
    idle_timeout_seconds: float = DEFAULT_IDLE_TIMEOUT_SECONDS
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS

    openai_api_key: str | None = None
    chat_model: str = DEFAULT_CHAT_MODEL
    llm_timeout_seconds: float = DEFAULT_LLM_TIMEOUT_SECONDS
    youtube_api_key: str | None = None

    rate_limit_max: int = DEFAULT_RATE_LIMIT_MAX
    rate_limit_window_seconds: float = DEFAULT_RATE_LIMIT_WINDOW_SECONDS
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        origins = [o.strip() for o in env.get("CORS_ORIGINS", "*").split(",") if o.strip()]

        return cls(
            max_messages=_int(env, "MAX_MESSAGES", DEFAULT_MAX_MESSAGES),
            idle_timeout_seconds=_float(
                env, "SESSION_IDLE_TIMEOUT_SECONDS", DEFAULT_IDLE_TIMEOUT_SECONDS
            ),
            sweep_interval_seconds=_float(
                env, "SESSION_SWEEP_INTERVAL_SECONDS", DEFAULT_SWEEP_INTERVAL_SECONDS
            ),
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            chat_model=env.get("CHAT_MODEL") or DEFAULT_CHAT_MODEL,
            llm_timeout_seconds=_float(env, "LLM_TIMEOUT_SECONDS", DEFAULT_LLM_TIMEOUT_SECONDS),
            youtube_api_key=env.get("YOUTUBE_API_KEY") or None,
            rate_limit_max=_int(env, "RATE_LIMIT_MAX", DEFAULT_RATE_LIMIT_MAX),
            rate_limit_window_seconds=_float(
                env, "RATE_LIMIT_WINDOW_SECONDS", DEFAULT_RATE_LIMIT_WINDOW_SECONDS
            ),
            cors_origins=origins or ["*"],
        )
