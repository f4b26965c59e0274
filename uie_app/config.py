"""Runtime settings read from the environment and an optional ``.env`` file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .constants import DEFAULT_CREDENTIALS_PATH, DEFAULT_PROVIDER_TIMEOUT, DEFAULT_USER_AGENT

_TRUTHY = {"1", "true", "yes", "on"}


def _float(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT
    gateway_timeout: Optional[float] = None
    offline: bool = False
    log_level: str = "INFO"
    chat_webhook_url: Optional[str] = None
    chat_timeout: float = 30.0
    chat_max_attempts: int = 3
    earthengine_credentials: Path = DEFAULT_CREDENTIALS_PATH
    nominatim_user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """Build settings from ``environ`` (default ``os.environ``) after loading ``env_file``."""

        if environ is None:
            load_dotenv(env_file)
            environ = os.environ
        credentials = environ.get("UIE_EE_CREDENTIALS")
        return cls(
            provider_timeout=_float(environ, "UIE_PROVIDER_TIMEOUT", DEFAULT_PROVIDER_TIMEOUT),
            gateway_timeout=_float(environ, "UIE_GATEWAY_TIMEOUT", None),
            offline=environ.get("UIE_OFFLINE", "").strip().lower() in _TRUTHY,
            log_level=environ.get("UIE_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            chat_webhook_url=environ.get("UIE_CHAT_WEBHOOK_URL") or None,
            chat_timeout=_float(environ, "UIE_CHAT_TIMEOUT", 30.0),
            chat_max_attempts=_int(environ, "UIE_CHAT_MAX_ATTEMPTS", 3),
            earthengine_credentials=Path(credentials) if credentials else DEFAULT_CREDENTIALS_PATH,
            nominatim_user_agent=environ.get("UIE_NOMINATIM_USER_AGENT") or DEFAULT_USER_AGENT,
        )


__all__ = ["Settings"]
