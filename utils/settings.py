"""Environment-driven configuration for the chat gateway."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_API_BASE_URL = "https://airlineticketing-system.azurewebsites.net"


def _as_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _as_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _as_bool(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Resolved gateway configuration.

    Attributes:
        openai_model: Model used for intent classification and reply composition.
        database_dir: Directory holding the SQLite transcript file, or None to run without one.
        database_reset_on_start: Wipe the transcript file on startup.
        history_limit: Number of recent messages loaded for a session or returned by /history.
        api_base_url: Partner backend base URL (login lives under it).
        query_flight_api: Absolute URL of the flight search endpoint.
        buy_ticket_api: Absolute URL of the ticket purchase endpoint.
        check_in_api: Absolute URL of the check-in endpoint.
        api_username: Login user for the partner backend.
        api_password: Login password for the partner backend.
        api_timeout: Default request timeout in seconds.
        search_timeout: Timeout in seconds for flight searches.
        token_ttl_seconds: Lifetime assumed for a freshly issued bearer token.
        rest_session_idle_seconds: Idle time after which a REST chat session is evicted.
        rest_session_limit: Maximum number of live REST chat sessions.
        log_level: Root logging level name.
    """

    openai_model: str = "gpt-4o"
    database_dir: Optional[str] = None
    database_reset_on_start: bool = False
    history_limit: int = 20
    api_base_url: str = DEFAULT_API_BASE_URL
    query_flight_api: str = f"{DEFAULT_API_BASE_URL}/api/v1/Flight"
    buy_ticket_api: str = f"{DEFAULT_API_BASE_URL}/api/v1/Ticket"
    check_in_api: str = f"{DEFAULT_API_BASE_URL}/api/v1/Ticket/checkin"
    api_username: Optional[str] = None
    api_password: Optional[str] = None
    api_timeout: float = 10.0
    search_timeout: float = 150.0
    token_ttl_seconds: int = 3600
    rest_session_idle_seconds: int = 1800
    rest_session_limit: int = 1000
    log_level: str = "INFO"

    @property
    def login_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/api/v1/Auth/login"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from `env` (defaults to `os.environ`)."""
        env = os.environ if env is None else env
        base_url = (env.get("API_BASE_URL") or DEFAULT_API_BASE_URL).rstrip("/")
        database_dir = (env.get("DATABASE_DIR") or "").strip() or None
        return cls(
            openai_model=env.get("OPENAI_MODEL") or "gpt-4o",
            database_dir=database_dir,
            database_reset_on_start=_as_bool(env, "DATABASE_RESET_ON_START"),
            history_limit=_as_int(env, "HISTORY_LIMIT", 20),
            api_base_url=base_url,
            query_flight_api=env.get("QUERY_FLIGHT_API") or f"{base_url}/api/v1/Flight",
            buy_ticket_api=env.get("BUY_TICKET_API") or f"{base_url}/api/v1/Ticket",
            check_in_api=env.get("CHECK_IN_API") or f"{base_url}/api/v1/Ticket/checkin",
            api_username=env.get("API_USERNAME"),
            api_password=env.get("API_PASSWORD"),
            api_timeout=_as_float(env, "API_TIMEOUT", 10.0),
            search_timeout=_as_float(env, "SEARCH_TIMEOUT", 150.0),
            token_ttl_seconds=_as_int(env, "TOKEN_TTL_SECONDS", 3600),
            rest_session_idle_seconds=_as_int(env, "REST_SESSION_IDLE_SECONDS", 1800),
            rest_session_limit=_as_int(env, "REST_SESSION_LIMIT", 1000),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )
