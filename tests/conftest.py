import itertools

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage, AIMessageChunk

from app.main import app, chat_model_provider
from app.store import get_redis

REPLY = "Try lentils with spinach and a squeeze of lemon."


class RecordingModel:
    """Streams a fixed reply word by word and remembers what it was asked."""

    def __init__(self, reply=REPLY):
        self.reply = reply
        self.calls = []

    async def astream(self, messages):
        self.calls.append(messages)
        words = self.reply.split(" ")
        for i, word in enumerate(words):
            yield AIMessageChunk(content=word if i == len(words) - 1 else word + " ")


class FailingModel:
    def __init__(self, after=0):
        self.after = after

    async def astream(self, messages):
        for i in range(self.after):
            yield AIMessageChunk(content=f"chunk{i} ")
        raise RuntimeError("model backend exploded")


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
async def raw_redis(redis_server):
    """Byte-level client on the same server, for writing undecodable values."""
    client = fakeredis.FakeAsyncRedis(server=redis_server)
    yield client
    await client.aclose()


@pytest.fixture
async def redis(redis_server):
    client = fakeredis.FakeAsyncRedis(server=redis_server, decode_responses=True)
    await client.flushall()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def model():
    return GenericFakeChatModel(messages=itertools.cycle([AIMessage(content=REPLY)]))


@pytest.fixture
def use_model():
    """Swap the chat model used by the app for the rest of the test."""

    def _use(model):
        app.dependency_overrides[chat_model_provider] = lambda: (lambda: model)
        return model

    return _use


@pytest.fixture
async def client(redis, model, use_model):
    app.dependency_overrides[get_redis] = lambda: redis
    use_model(model)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
