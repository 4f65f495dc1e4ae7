"""Shared fixtures and capability fakes for story_keeper tests."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Union

import pytest

from story_keeper.story import InMemoryStoryStore, MemoryRecord, StoryService


BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeTextGenerator:
    """
    TextGenerationService fake.

    Responses are picked by the first key found in the prompt; a response may
    be a string or an exception instance to raise. Unmatched prompts get
    `default` (or raise when default is an exception).
    """

    def __init__(
        self,
        responses: Optional[Dict[str, Union[str, Exception]]] = None,
        default: Union[str, Exception] = "generated text",
    ):
        self.responses = responses or {}
        self.default = default
        self.calls: List[Dict] = []

    async def generate(self, prompt: str, max_tokens: int, style_hint: Optional[str] = None) -> str:
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "style_hint": style_hint})
        response = self.default
        for key, value in self.responses.items():
            if key in prompt:
                response = value
                break
        if isinstance(response, Exception):
            raise response
        return response

    def prompts_containing(self, text: str) -> List[str]:
        return [c["prompt"] for c in self.calls if text in c["prompt"]]


class FakeEmbedder:
    """EmbeddingService fake: a fixed vector, or one per keyword found in the text."""

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        default: Optional[List[float]] = None,
        error: Optional[Exception] = None,
    ):
        self.vectors = vectors or {}
        self.default = default if default is not None else [0.1, 0.2, 0.3]
        self.error = error
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        for key, vector in self.vectors.items():
            if key.lower() in text.lower():
                return vector
        return self.default


@pytest.fixture
def make_memory() -> Callable[..., MemoryRecord]:
    """Factory for memory records with increasing timestamps."""
    counter = {"n": 0}

    def _make(
        people=None,
        places=None,
        events=None,
        dates=None,
        relationships=None,
        conversation_id: str = "conv_1",
        memory_id: Optional[str] = None,
        minutes: Optional[int] = None,
    ) -> MemoryRecord:
        counter["n"] += 1
        offset = counter["n"] if minutes is None else minutes
        return MemoryRecord(
            id=memory_id or f"mem_{counter['n']}",
            conversation_id=conversation_id,
            created_at=BASE_TIME + timedelta(minutes=offset),
            payload={
                "people": people or [],
                "places": places or [],
                "events": events or [],
                "dates": dates or [],
                "relationships": relationships or [],
            },
        )

    return _make


@pytest.fixture
def giuseppe_memories(make_memory) -> List[MemoryRecord]:
    """Three memories about Giuseppe's immigration through Ellis Island."""
    return [
        make_memory(
            people=[{"name": "Giuseppe", "relationship": "grandfather"}],
            places=["Ellis Island"],
            events=["immigration"],
            dates=["arrived at Ellis Island in 1955"],
            conversation_id="conv_1",
        ),
        make_memory(
            people=["Giuseppe"],
            places=["Ellis Island", "New York"],
            events=["immigration"],
            conversation_id="conv_1",
        ),
        make_memory(
            people=["Giuseppe", "Maria"],
            places=["Ellis Island"],
            events=["immigration"],
            relationships=[{"from": "Giuseppe", "to": "Maria", "relation": "father"}],
            conversation_id="conv_1",
        ),
    ]


@pytest.fixture
def dad_memories(make_memory) -> List[MemoryRecord]:
    """Two memories about Dad's illness at Mount Sinai Hospital."""
    return [
        make_memory(
            people=["Dad"],
            places=["Mount Sinai Hospital"],
            events=["cancer diagnosis"],
            conversation_id="conv_2",
        ),
        make_memory(
            people=["Dad"],
            places=["Mount Sinai Hospital"],
            events=["passed away"],
            dates=["1998"],
            conversation_id="conv_2",
        ),
    ]


@pytest.fixture
def store() -> InMemoryStoryStore:
    return InMemoryStoryStore()


@pytest.fixture
def offline_service(store: InMemoryStoryStore) -> StoryService:
    """StoryService without any capability: every step uses its fallback."""
    return StoryService(store)
