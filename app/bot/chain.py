import logging
from functools import lru_cache
from typing import AsyncIterator, Iterable, List

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from app.config import CHAT_MODEL, CHAT_TEMPERATURE, GOOGLE_API_KEY
from app.messages import message_text
from app.models import UIMessage

logger = logging.getLogger(__name__)


# ---- MODEL ----
@lru_cache(maxsize=1)
def get_chat_model() -> BaseChatModel:
    return ChatGoogleGenerativeAI(
        model=CHAT_MODEL,
        api_key=GOOGLE_API_KEY,
        temperature=CHAT_TEMPERATURE,
    )


# ---- HISTORY ----
def to_langchain_messages(system_prompt: str, history: Iterable[UIMessage]) -> List[BaseMessage]:
    messages: List[BaseMessage] = [SystemMessage(content=system_prompt)]
    for m in history:
        if m.role == "user":
            messages.append(HumanMessage(content=message_text(m)))
        elif m.role == "assistant":
            messages.append(AIMessage(content=message_text(m)))
    return messages


def _chunk_text(chunk) -> str:
    content = chunk.content
    if isinstance(content, str):
        return content
    # Gemini can return a list of content blocks
    return "".join(
        block.get("text", "") if isinstance(block, dict) else str(block)
        for block in content
    )


# ---- STREAMING ----
async def stream_reply(
    model: BaseChatModel,
    system_prompt: str,
    history: Iterable[UIMessage],
) -> AsyncIterator[str]:
    """Yield the assistant reply text as the model produces it."""
    messages = to_langchain_messages(system_prompt, history)
    logger.debug("Streaming reply for %d messages", len(messages) - 1)
    async for chunk in model.astream(messages):
        text = _chunk_text(chunk)
        if text:
            yield text
