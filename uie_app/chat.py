"""Client for the remote chat webhook used by the dashboard assistant."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

import requests
from loguru import logger

from .models import CityHealthSnapshot

REPLY_KEYS = ("response", "text", "content", "result", "answer", "output", "message", "data", "body")


class ChatErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER = "server"
    UNKNOWN = "unknown"


USER_MESSAGES = {
    ChatErrorKind.NETWORK: "The assistant could not be reached. Check your connection and try again.",
    ChatErrorKind.TIMEOUT: "The assistant took too long to answer. Please try again in a moment.",
    ChatErrorKind.SERVER: "The assistant service is having problems right now. Please try again later.",
    ChatErrorKind.UNKNOWN: "Something went wrong while talking to the assistant.",
}

RETRYABLE = {ChatErrorKind.NETWORK, ChatErrorKind.TIMEOUT, ChatErrorKind.SERVER}


class ChatGatewayError(RuntimeError):
    def __init__(self, kind: ChatErrorKind, detail: str, attempts: int) -> None:
        super().__init__(f"{kind.value} error after {attempts} attempt(s): {detail}")
        self.kind = kind
        self.detail = detail
        self.attempts = attempts

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self.kind]


def extract_reply(payload: Any) -> Optional[str]:
    """Pull the reply text out of the response shapes the webhook is known to use."""

    if isinstance(payload, str):
        return payload.strip() or None
    if isinstance(payload, list):
        for item in payload:
            reply = extract_reply(item)
            if reply:
                return reply
        return None
    if not isinstance(payload, dict):
        return None
    for key in REPLY_KEYS:
        if key in payload:
            reply = extract_reply(payload[key])
            if reply:
                return reply
    try:
        return extract_reply(payload["candidates"][0]["content"]["parts"][0]["text"])
    except (KeyError, IndexError, TypeError):
        return None


def backoff_delay(attempt: int, base: float = 1.0, cap: float = 4.0) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (1-based)."""

    return min(base * 2 ** (attempt - 1), cap)


def build_chat_prompt(question: str, snapshot: Optional[CityHealthSnapshot] = None) -> str:
    """Prefix ``question`` with the environmental context of ``snapshot``."""

    if snapshot is None:
        return question
    sample = snapshot.sample
    place = snapshot.place_name or f"{snapshot.location.latitude:.2f}, {snapshot.location.longitude:.2f}"
    lines = [
        f"Location: {place}",
        f"Overall urban health: {snapshot.overall_score:.0f}/100 ({snapshot.health_status})",
        f"Temperature: {sample.temperature:.1f} °C, surface {sample.surface_temperature:.1f} °C",
        f"Air quality score: {sample.air_quality_score:.0f}/100",
        f"Vegetation cover: {sample.vegetation_fraction:.0%}",
        f"Precipitation: {sample.precipitation:.1f} mm/day",
        f"Data quality: {snapshot.data_quality.value}",
    ]
    for key, status in snapshot.statuses.items():
        lines.append(f"{key.upper()}: {snapshot.indices[key].total_score} ({status.band.value})")
    return "Context:\n" + "\n".join(lines) + f"\n\nUser question: {question}"


@dataclass
class WebhookChatClient:
    """POST prompts to a chat webhook with retries and exponential backoff."""

    url: str
    timeout: float = 30.0
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 4.0
    source: str = "urban-index-engine"
    version: str = "1.0"
    session: requests.Session = field(default_factory=requests.Session)
    sleep: Callable[[float], None] = time.sleep

    def _payload(self, prompt: str, message_type: str, attempt: int) -> dict:
        return {
            "prompt": prompt,
            "type": message_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": self.source,
            "version": self.version,
            "retry_attempt": attempt,
        }

    def _attempt(self, prompt: str, message_type: str, attempt: int) -> str:
        try:
            response = self.session.post(
                self.url,
                json=self._payload(prompt, message_type, attempt),
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise ChatGatewayError(ChatErrorKind.TIMEOUT, str(exc), attempt) from exc
        except requests.ConnectionError as exc:
            raise ChatGatewayError(ChatErrorKind.NETWORK, str(exc), attempt) from exc
        except requests.RequestException as exc:
            raise ChatGatewayError(ChatErrorKind.UNKNOWN, str(exc), attempt) from exc

        if response.status_code >= 500:
            raise ChatGatewayError(ChatErrorKind.SERVER, f"HTTP {response.status_code}", attempt)
        if response.status_code >= 400:
            raise ChatGatewayError(ChatErrorKind.UNKNOWN, f"HTTP {response.status_code}", attempt)

        try:
            payload = response.json()
        except ValueError:
            payload = response.text
        reply = extract_reply(payload)
        if not reply:
            raise ChatGatewayError(ChatErrorKind.UNKNOWN, "response contained no reply text", attempt)
        return reply

    def ask(self, prompt: str, message_type: str = "chat") -> str:
        attempt = 1
        while True:
            try:
                return self._attempt(prompt, message_type, attempt)
            except ChatGatewayError as exc:
                if exc.kind not in RETRYABLE or attempt >= self.max_attempts:
                    logger.warning("Chat webhook failed: {}", exc)
                    raise
                delay = backoff_delay(attempt, self.base_delay, self.max_delay)
                logger.info("Chat webhook {} error on attempt {}; retrying in {}s", exc.kind.value, attempt, delay)
                self.sleep(delay)
                attempt += 1


__all__ = [
    "ChatErrorKind",
    "ChatGatewayError",
    "WebhookChatClient",
    "backoff_delay",
    "build_chat_prompt",
    "extract_reply",
]
