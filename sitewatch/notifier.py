from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)

# Telegram caps messages at 4096 characters; keep a margin.
MAX_CHUNK = 3900


@dataclass
class DeliveryOutcome:
    ok: bool
    chunks_sent: int
    chunks_total: int
    error: str | None = None


class Notifier(Protocol):
    channel: str
    markup: str

    def notify(self, text: str) -> DeliveryOutcome: ...


def chunk_text(text: str, size: int = MAX_CHUNK) -> list[str]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    return [text[i : i + size] for i in range(0, len(text), size)]


class _ChunkedNotifier:
    channel = "none"
    markup = "plain"

    def __init__(self, max_chunk: int = MAX_CHUNK) -> None:
        self.max_chunk = max_chunk

    def _send_chunk(self, part: str) -> str | None:
        """Deliver one chunk; return an error message on failure."""
        raise NotImplementedError

    def notify(self, text: str) -> DeliveryOutcome:
        chunks = chunk_text(text, self.max_chunk)
        sent = 0
        for part in chunks:
            try:
                error = self._send_chunk(part)
            except requests.RequestException as exc:
                error = f"{exc.__class__.__name__}: {exc}"
            if error is not None:
                logger.error(
                    "%s delivery failed at chunk %d/%d: %s",
                    self.channel,
                    sent + 1,
                    len(chunks),
                    error,
                )
                return DeliveryOutcome(
                    ok=False, chunks_sent=sent, chunks_total=len(chunks), error=error
                )
            sent += 1
        return DeliveryOutcome(ok=True, chunks_sent=sent, chunks_total=len(chunks))


@dataclass
class TelegramConfig:
    token: str
    chat_id: str
    api_base: str = "https://api.telegram.org"
    timeout_s: float = 10


class TelegramNotifier(_ChunkedNotifier):
    channel = "telegram"
    markup = "html"

    def __init__(self, cfg: TelegramConfig, max_chunk: int = MAX_CHUNK) -> None:
        super().__init__(max_chunk)
        self.cfg = cfg

    @property
    def endpoint(self) -> str:
        return f"{self.cfg.api_base.rstrip('/')}/bot{self.cfg.token}/sendMessage"

    def _send_chunk(self, part: str) -> str | None:
        resp = requests.post(
            self.endpoint,
            data={
                "chat_id": self.cfg.chat_id,
                "text": part,
                "parse_mode": "HTML",
                "disable_web_page_preview": "true",
            },
            timeout=self.cfg.timeout_s,
        )
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.status_code >= 400 or not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else None
            return f"Telegram HTTP {resp.status_code}: {description or 'not ok'}"
        return None


@dataclass
class NtfyConfig:
    base_url: str
    topic: str
    title: str = "Site monitor"
    priority: int = 4
    tags: Optional[str] = "rotating_light"
    timeout_s: float = 5


class NtfyNotifier(_ChunkedNotifier):
    channel = "ntfy"

    def __init__(self, cfg: NtfyConfig, max_chunk: int = MAX_CHUNK) -> None:
        super().__init__(max_chunk)
        self.cfg = cfg

    def _send_chunk(self, part: str) -> str | None:
        url = f"{self.cfg.base_url.rstrip('/')}/{self.cfg.topic}"
        headers = {
            "Title": self.cfg.title,
            "Priority": str(self.cfg.priority),
        }
        if self.cfg.tags:
            headers["Tags"] = self.cfg.tags  # comma-separated emoji or tag words
        resp = requests.post(
            url, data=part.encode("utf-8"), headers=headers, timeout=self.cfg.timeout_s
        )
        if resp.status_code >= 400:
            return f"ntfy HTTP {resp.status_code}"
        return None


def build_notifier(cfg) -> Notifier | None:
    if cfg.TELEGRAM_TOKEN and cfg.TELEGRAM_CHAT_ID:
        return TelegramNotifier(
            TelegramConfig(token=cfg.TELEGRAM_TOKEN, chat_id=cfg.TELEGRAM_CHAT_ID)
        )
    if cfg.NTFY_URL and cfg.NTFY_TOPIC:
        return NtfyNotifier(NtfyConfig(base_url=cfg.NTFY_URL, topic=cfg.NTFY_TOPIC))
    return None
