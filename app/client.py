"""Small HTTP client for the diet plan service, for scripts and other Python callers."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, List, Optional

import requests

from app.errors import RateLimitExceeded

logger = logging.getLogger(__name__)


@dataclass
class ChatReply:
    text: str
    remaining: Optional[int]
    reset_at: Optional[str]


def iter_stream_text(lines: Iterable[str]) -> Iterator[str]:
    """Yield reply text from a chat response body, line by line.

    Understands UI-message stream events (``data: {"type": "text-delta"...}``)
    and the older data-stream format where text lines look like ``0:"..."``.
    """
    for line in lines:
        if not line:
            continue
        if line.startswith("data:"):
            payload = line[len("data:"):].strip()
            if payload == "[DONE]":
                return
            try:
                event = json.loads(payload)
            except ValueError:
                logger.debug("Skipping malformed stream line: %r", line)
                continue
            if isinstance(event, dict) and event.get("type") == "text-delta":
                yield str(event.get("delta", ""))
        elif line.startswith("0:"):
            try:
                text = json.loads(line[2:])
            except ValueError:
                logger.debug("Skipping malformed stream line: %r", line)
                continue
            if isinstance(text, str):
                yield text


def _parse_reset(value):
    try:
        return datetime.fromisoformat(value) if value else None
    except ValueError:
        return None


def send_chat(
    base_url: str,
    chat_id: str,
    messages: List[dict],
    preferences: Optional[dict] = None,
    prompt_type: Optional[str] = None,
    timeout: float = 60,
) -> ChatReply:
    url = f"{base_url.rstrip('/')}/chat"

    payload = {
        "chatId": chat_id,
        "messages": messages,
        "userPreferences": preferences or {},
    }
    if prompt_type:
        payload["promptType"] = prompt_type

    headers = {"Content-Type": "application/json"}

    with requests.post(url, json=payload, headers=headers, stream=True, timeout=timeout) as response:
        if response.status_code == 429:
            body = response.json()
            raise RateLimitExceeded(
                body.get("message", "Rate limit exceeded"),
                reset_at=_parse_reset(body.get("resetAt")),
            )
        response.raise_for_status()

        remaining = response.headers.get("X-RateLimit-Remaining")
        response.encoding = "utf-8"
        text = "".join(iter_stream_text(response.iter_lines(decode_unicode=True)))

        return ChatReply(
            text=text,
            remaining=int(remaining) if remaining is not None else None,
            reset_at=response.headers.get("X-RateLimit-Reset"),
        )


def fetch_messages(base_url: str, chat_id: str, timeout: float = 30) -> List[dict]:
    response = requests.get(f"{base_url.rstrip('/')}/messages", params={"chatId": chat_id}, timeout=timeout)
    response.raise_for_status()
    return response.json().get("messages", [])


def store_messages(base_url: str, chat_id: str, messages: List[dict], timeout: float = 30) -> None:
    response = requests.post(
        f"{base_url.rstrip('/')}/messages",
        json={"chatId": chat_id, "messages": messages},
        timeout=timeout,
    )
    response.raise_for_status()


def delete_messages(base_url: str, chat_id: str, timeout: float = 30) -> None:
    response = requests.delete(f"{base_url.rstrip('/')}/messages", params={"chatId": chat_id}, timeout=timeout)
    response.raise_for_status()
