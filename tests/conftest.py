"""
Shared test fixtures.

Fakes stand in for the hosted services:
- FakeOpenAI: deterministic bag-of-words embeddings and scripted chat completions
- FakeChromaClient: in-memory collection with cosine distance
- FakeSlackClient: canned channels, history and users
"""

import hashlib
import math
import re
import threading
from datetime import datetime
from types import SimpleNamespace
from typing import Optional

import pytest
from slack_sdk.errors import SlackApiError

from doc_assistant.config import Settings
from doc_assistant.services import build_services
from doc_assistant.slack.adapter import SlackStatusAdapter

DIMENSION = 1536


# ── OpenAI ───────────────────────────────────────────────

def fake_embedding(text: str, dimension: int = DIMENSION) -> list[float]:
    """Hash each word into a bucket; cosine similarity then tracks word overlap."""
    vector = [0.0] * dimension
    for word in re.findall(r"[a-z0-9]+", text.lower()):
        bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % dimension
        vector[bucket] += 1.0
    norm = math.sqrt(sum(v * v for v in vector)) or 1.0
    return [v / norm for v in vector]


class FakeEmbeddings:
    def __init__(self):
        self.calls: list[list[str]] = []
        self.error: Optional[Exception] = None
        self.dimension = DIMENSION

    async def create(self, model: str, input):
        texts = [input] if isinstance(input, str) else list(input)
        self.calls.append(texts)
        if self.error:
            raise self.error
        return SimpleNamespace(data=[
            SimpleNamespace(index=i, embedding=fake_embedding(t, self.dimension))
            for i, t in enumerate(texts)
        ])


def make_tool_call(name: str, arguments: str) -> SimpleNamespace:
    return SimpleNamespace(
        id="call_1",
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


class FakeCompletions:
    def __init__(self):
        self.calls: list[dict] = []
        self.error: Optional[Exception] = None
        self.content: Optional[str] = "Here is my answer."
        self.tool_calls: Optional[list] = None

    def reply_with_tool(self, name: str, arguments: str, content: Optional[str] = None) -> None:
        self.content = content
        self.tool_calls = [make_tool_call(name, arguments)]

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(role="assistant", content=self.content, tool_calls=self.tool_calls)
        return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message, finish_reason="stop")])

    @property
    def last_system_prompt(self) -> str:
        return self.calls[-1]["messages"][0]["content"]


class FakeOpenAI:
    def __init__(self):
        self.embeddings = FakeEmbeddings()
        self.chat = SimpleNamespace(completions=FakeCompletions())
        self.closed = False

    async def close(self):
        self.closed = True


# ── Chroma ───────────────────────────────────────────────

def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


def _matches(metadata: dict, where: Optional[dict]) -> bool:
    """Evaluate the subset of Chroma's where syntax the app uses: equality, $and, $gte."""
    if not where:
        return True
    for key, condition in where.items():
        if key == "$and":
            if not all(_matches(metadata, clause) for clause in condition):
                return False
        elif isinstance(condition, dict):
            value = metadata.get(key)
            if value is None or value < condition["$gte"]:
                return False
        elif metadata.get(key) != condition:
            return False
    return True


class FakeCollection:
    def __init__(self, name: str, metadata: Optional[dict] = None):
        self.name = name
        self.metadata = metadata or {}
        self.records: dict[str, dict] = {}
        self.query_error: Optional[Exception] = None
        self.upsert_error: Optional[Exception] = None
        self.query_threads: list[int] = []

    def upsert(self, ids, documents, embeddings, metadatas):
        if self.upsert_error:
            raise self.upsert_error
        for i, record_id in enumerate(ids):
            self.records[record_id] = {
                "document": documents[i],
                "embedding": embeddings[i],
                "metadata": metadatas[i],
            }

    def query(self, query_embeddings, n_results, where=None, include=None):
        self.query_threads.append(threading.get_ident())
        if self.query_error:
            raise self.query_error
        scored = sorted(
            (
                (1 - _cosine(query_embeddings[0], r["embedding"]), record_id, r)
                for record_id, r in self.records.items()
                if _matches(r["metadata"], where)
            ),
            key=lambda item: item[0],
        )[:n_results]
        return {
            "ids": [[record_id for _, record_id, _ in scored]],
            "documents": [[r["document"] for _, _, r in scored]],
            "metadatas": [[r["metadata"] for _, _, r in scored]],
            "distances": [[distance for distance, _, _ in scored]],
        }

    def delete(self, where=None, ids=None):
        for record_id in list(self.records):
            if ids and record_id not in ids:
                continue
            if _matches(self.records[record_id]["metadata"], where):
                del self.records[record_id]

    def count(self):
        return len(self.records)


class FakeChromaClient:
    def __init__(self):
        self.collections: dict[str, FakeCollection] = {}

    def list_collections(self):
        return list(self.collections)

    def get_or_create_collection(self, name, metadata=None, embedding_function=None):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name, metadata)
        return self.collections[name]


# ── Slack ────────────────────────────────────────────────

def slack_error(code: str, **extra) -> SlackApiError:
    return SlackApiError("The request to the Slack API failed.", {"ok": False, "error": code, **extra})


class FakeSlackClient:
    """Async stand-in for slack_sdk's AsyncWebClient."""

    def __init__(self, channels=None, history=None, users=None):
        self.channels = channels if channels is not None else [
            {"id": "C001", "name": "general", "is_member": True},
            {"id": "C002", "name": "random", "is_member": False},
        ]
        self.channel_pages: Optional[list[list[dict]]] = None
        self.history: dict[str, list[dict]] = history or {}
        self.users: dict[str, dict] = users or {
            "U001": {"id": "U001", "name": "alice", "real_name": "Alice Smith", "profile": {"display_name": "alice"}},
            "U002": {"id": "U002", "name": "bob", "real_name": "Bob Jones", "profile": {"display_name": ""}},
        }
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, dict]] = []

    def _maybe_fail(self, method: str, kwargs: dict) -> None:
        self.calls.append((method, kwargs))
        if method in self.errors:
            raise self.errors[method]

    async def conversations_list(self, **kwargs):
        self._maybe_fail("conversations_list", kwargs)
        if self.channel_pages is None:
            return {"ok": True, "channels": self.channels, "response_metadata": {"next_cursor": ""}}
        page = int(kwargs.get("cursor") or 0)
        next_cursor = str(page + 1) if page + 1 < len(self.channel_pages) else ""
        return {"ok": True, "channels": self.channel_pages[page], "response_metadata": {"next_cursor": next_cursor}}

    async def conversations_history(self, **kwargs):
        self._maybe_fail("conversations_history", kwargs)
        return {"ok": True, "messages": self.history.get(kwargs["channel"], []), "has_more": False}

    async def users_info(self, **kwargs):
        self._maybe_fail("users_info", kwargs)
        user = self.users.get(kwargs["user"])
        if user is None:
            raise slack_error("user_not_found")
        return {"ok": True, "user": user}

    async def auth_test(self, **kwargs):
        self._maybe_fail("auth_test", kwargs)
        return {"ok": True, "user_id": "UBOT", "bot_id": "BBOT", "team": "Acme", "user": "docbot"}


def slack_post(user: str, text: str, ts: float, **extra) -> dict:
    return {"type": "message", "user": user, "text": text, "ts": f"{ts:.6f}", **extra}


def today_timestamps(count: int) -> list[float]:
    """Timestamps spread across today's elapsed time, oldest first."""
    now = datetime.now().astimezone()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    span = now.timestamp() - midnight.timestamp()
    return [midnight.timestamp() + span * (i + 1) / (count + 2) for i in range(count)]


# ── Fixtures ─────────────────────────────────────────────

@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def chroma():
    return FakeChromaClient()


@pytest.fixture
def slack_client():
    return FakeSlackClient()


@pytest.fixture
def settings():
    return Settings(openai_api_key="sk-test", chunk_size=20, collection_name="test-docs")


@pytest.fixture
def services(settings, fake_openai, chroma, slack_client):
    slack = SlackStatusAdapter(slack_client, status_bot_name="Status Bot")
    return build_services(settings, openai_client=fake_openai, chroma_client=chroma, slack=slack)
