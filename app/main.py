import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import unquote

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from app.bot.chain import get_chat_model, stream_reply
from app.bot.prompt import PromptType, build_system_prompt
from app.config import LOG_LEVEL, RATE_LIMIT
from app.errors import (
    BadRequest,
    DietChatError,
    RateLimitExceeded,
    UpstreamGenerationFailure,
)
from app.messages import clear_messages, flatten_messages, load_messages, save_messages
from app.models import ChatRequest, RequestHints, SaveMessagesRequest, UserPreferences
from app.nutrients import list_nutrients
from app.rate_limit import check_rate_limit
from app.store import close_redis, get_redis

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_redis()


app = FastAPI(title="Diet Plan Assistant", lifespan=lifespan)


def chat_model_provider():
    """Model factory dependency; the model is built on first use."""
    return get_chat_model


@app.exception_handler(DietChatError)
async def diet_chat_error_handler(request: Request, exc: DietChatError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (cause: %r)", request.method, request.url.path, exc.message, exc.__cause__)
    headers = None
    if isinstance(exc, RateLimitExceeded) and exc.reset_at is not None:
        headers = {
            "X-RateLimit-Remaining": str(exc.remaining),
            "X-RateLimit-Reset": exc.reset_at.isoformat(),
        }
    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(DietChatError().to_dict(), status_code=500)


# ---- REQUEST HELPERS ----
def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and forwarded.strip():
        return forwarded.split(",")[0].strip() or "unknown"
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _float_header(request, name):
    try:
        return float(request.headers.get(name) or 0)
    except ValueError:
        return 0.0


def request_hints(request: Request) -> RequestHints:
    """Geolocation hints set by the edge proxy in front of the service."""
    return RequestHints(
        city=unquote(request.headers.get("x-vercel-ip-city") or "Unknown"),
        country=request.headers.get("x-vercel-ip-country") or "Unknown",
        latitude=_float_header(request, "x-vercel-ip-latitude"),
        longitude=_float_header(request, "x-vercel-ip-longitude"),
    )


def _sse(event) -> str:
    payload = event if isinstance(event, str) else json.dumps(event, ensure_ascii=False)
    return f"data: {payload}\n\n"


async def ui_message_stream(first: Optional[str], chunks, reply: dict):
    """Forward model text as UI-message stream events.

    ``reply["text"]`` is only set once generation finished, so an interrupted
    stream leaves nothing to persist.
    """
    text_id = uuid.uuid4().hex
    yield _sse({"type": "start", "messageId": f"msg-{uuid.uuid4().hex}"})
    yield _sse({"type": "start-step"})
    yield _sse({"type": "text-start", "id": text_id})

    parts = []
    try:
        if first is not None:
            parts.append(first)
            yield _sse({"type": "text-delta", "id": text_id, "delta": first})
        async for text in chunks:
            parts.append(text)
            yield _sse({"type": "text-delta", "id": text_id, "delta": text})
    except Exception:
        logger.exception("Error while streaming diet chat reply")
        yield _sse({"type": "error", "errorText": "Failed to generate a response."})
        yield _sse("[DONE]")
        return

    reply["text"] = "".join(parts)
    yield _sse({"type": "text-end", "id": text_id})
    yield _sse({"type": "finish-step"})
    yield _sse({"type": "finish"})
    yield _sse("[DONE]")


async def persist_transcript(redis, chat_id: str, history, reply: dict):
    if "text" not in reply:
        logger.warning("Reply for chat %s did not complete; transcript not saved", chat_id)
        return
    try:
        await save_messages(redis, chat_id, flatten_messages(history, reply["text"]))
        logger.info("Messages saved for chat: %s", chat_id)
    except Exception:
        logger.exception("Error saving messages for chat %s", chat_id)


# ---- ROUTES ----
@app.get("/")
async def health():
    return {"status": "ok"}


@app.post("/chat")
async def chat(
    body: ChatRequest,
    request: Request,
    redis=Depends(get_redis),
    model_factory=Depends(chat_model_provider),
):
    logger.info(
        "Diet chat request: chat=%s messages=%d prompt=%s",
        body.chat_id, len(body.messages), body.prompt_type,
    )

    if not body.chat_id:
        raise BadRequest("chatId is required")

    try:
        limit = await check_rate_limit(redis, client_ip(request))
        if not limit.allowed:
            raise RateLimitExceeded(
                f"You've reached the daily limit of {RATE_LIMIT} messages. "
                f"Please try again after {limit.reset_at:%H:%M}.",
                reset_at=limit.reset_at,
                remaining=limit.remaining,
            )

        system_prompt = build_system_prompt(
            PromptType.parse(body.prompt_type),
            body.user_preferences or UserPreferences(),
            request_hints(request),
        )

        chunks = stream_reply(model_factory(), system_prompt, body.messages)
        # Pull the first chunk here so upstream failures still get a JSON error
        first = await anext(chunks, None)
    except DietChatError:
        raise
    except Exception as e:
        logger.exception("Diet chat error")
        raise UpstreamGenerationFailure() from e

    reply = {}
    return StreamingResponse(
        ui_message_stream(first, chunks, reply),
        media_type="text/event-stream",
        headers={
            "X-RateLimit-Remaining": str(limit.remaining),
            "X-RateLimit-Reset": limit.reset_at.isoformat(),
            "x-vercel-ai-ui-message-stream": "v1",
            "Cache-Control": "no-cache",
        },
        background=BackgroundTask(persist_transcript, redis, body.chat_id, body.messages, reply),
    )


def _require_chat_id(chat_id, where="chatId"):
    if not chat_id:
        raise BadRequest(f"{where} is required")
    return chat_id


@app.post("/messages")
async def post_messages(body: SaveMessagesRequest, redis=Depends(get_redis)):
    chat_id = _require_chat_id(body.chat_id)
    await save_messages(redis, chat_id, body.messages)
    return {"success": True}


@app.get("/messages")
async def get_messages(chat_id: Optional[str] = Query(None, alias="chatId"), redis=Depends(get_redis)):
    chat_id = _require_chat_id(chat_id, "chatId query parameter")
    messages = await load_messages(redis, chat_id)
    return {"messages": [m.model_dump() for m in messages]}


@app.delete("/messages")
async def delete_messages(chat_id: Optional[str] = Query(None, alias="chatId"), redis=Depends(get_redis)):
    chat_id = _require_chat_id(chat_id, "chatId query parameter")
    await clear_messages(redis, chat_id)
    return {"success": True}


@app.get("/nutrients")
async def get_nutrients(category: Optional[str] = None):
    try:
        return {"nutrients": list_nutrients(category)}
    except (OSError, ValueError) as e:
        logger.error("Error loading micronutrients data: %s", e)
        raise DietChatError("Failed to load nutrient data") from e
