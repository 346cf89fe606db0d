import json
import logging
import time
from typing import Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError
from redis.exceptions import RedisError

from app.config import MESSAGE_TTL_SECONDS
from app.errors import BackendUnavailable
from app.models import StoredMessage, UIMessage

logger = logging.getLogger(__name__)

_message_list = TypeAdapter(List[StoredMessage])


def messages_key(chat_id):
    return f"diet-messages:{chat_id}"


async def save_messages(redis, chat_id: str, messages: Iterable[StoredMessage]) -> None:
    """Replace the stored transcript for ``chat_id``. Last write wins."""
    payload = json.dumps([m.model_dump() for m in messages])
    try:
        await redis.set(messages_key(chat_id), payload, ex=MESSAGE_TTL_SECONDS)
    except RedisError as e:
        raise BackendUnavailable("Failed to save messages") from e


async def load_messages(redis, chat_id: str) -> List[StoredMessage]:
    try:
        data = await redis.get(messages_key(chat_id))
    except RedisError as e:
        raise BackendUnavailable("Failed to load messages") from e
    except UnicodeDecodeError as e:
        logger.error("Stored messages for %s are not valid UTF-8: %s", chat_id, e)
        return []

    if not data:
        return []

    try:
        return _message_list.validate_json(data)
    except ValidationError as e:
        logger.error("Error parsing stored messages for %s: %s", chat_id, e)
        return []


async def clear_messages(redis, chat_id: str) -> None:
    try:
        await redis.delete(messages_key(chat_id))
    except RedisError as e:
        raise BackendUnavailable("Failed to clear messages") from e


def message_text(message: UIMessage) -> str:
    """Flatten a UI message to plain text; tool parts are kept as JSON."""
    if not message.parts:
        return message.content or ""

    pieces = []
    for part in message.parts:
        kind = str(part.get("type", ""))
        if kind == "text":
            pieces.append(str(part.get("text", "")))
        elif kind.startswith("tool-"):
            pieces.append(json.dumps(part))
    return "".join(pieces)


def flatten_messages(
    history: Iterable[UIMessage],
    assistant_text: str,
    now_ms: Optional[int] = None,
) -> List[StoredMessage]:
    """Turn the chat history plus the new assistant reply into a storable transcript."""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)

    stored = [
        StoredMessage(id=m.id, role=m.role, content=message_text(m), timestamp=now_ms)
        for m in history
        if m.role in ("user", "assistant")
    ]
    stored.append(
        StoredMessage(id=str(now_ms), role="assistant", content=assistant_text, timestamp=now_ms)
    )
    return stored
