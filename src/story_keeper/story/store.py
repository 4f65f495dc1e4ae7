"""
@file_name: store.py
@date: 2026-10-02
@description: StoryStore persistence contract and the in-memory implementation

StoryStore is the only persistence boundary the engine talks to. Two
implementations ship with the package:
- InMemoryStoryStore: dict-backed, used by tests and single-process deployments
- DatabaseStoryStore (database_store.py): MySQL via aiomysql

Contract notes:
- Reads of another user's story behave as "not found".
- update_story() with expected_version raises VersionConflictError when the
  stored version differs.
- Driver failures surface as PersistenceError.
- atomic() groups writes; a failure inside the block leaves no partial writes.
"""

from __future__ import annotations

import asyncio
import copy
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Set

from loguru import logger

from story_keeper.utils.embedding import cosine_similarity
from story_keeper.utils.exceptions import PersistenceError, VersionConflictError
from story_keeper.utils.text import extract_keywords
from story_keeper.utils.timezone import utc_now

from .config import config
from .models import Story, StoryQuery, StoryStats, StoryVersion


# Story fields that update_story() may change
UPDATABLE_FIELDS: Set[str] = {
    "title", "content", "narrative", "summary", "brief_summary", "embedding",
    "people", "places", "dates", "events", "relationships",
    "emotional_tags", "tone", "significance_rating", "privacy_level",
    "version", "is_complete", "source_memory_ids", "conversation_ids",
}


def searchable_text(story: Story) -> str:
    """Lowercased text a lexical search matches against"""
    parts = [
        story.title, story.brief_summary, story.summary, story.content, story.narrative,
        " ".join(story.people), " ".join(story.places),
        " ".join(story.events), " ".join(story.dates),
    ]
    return " ".join(p for p in parts if p).lower()


def lexical_score(story: Story, keywords: List[str]) -> float:
    """Fraction of query keywords found in the story's searchable text"""
    if not keywords:
        return 0.0
    haystack = searchable_text(story)
    return sum(1 for k in keywords if k in haystack) / len(keywords)


def rank_stories(
    stories: List[Story],
    query: StoryQuery,
    limit: int,
    min_similarity: float = config.SEMANTIC_MIN_SIMILARITY,
) -> List[Story]:
    """
    Rank candidate stories for a query

    Semantic hits (cosine >= min_similarity) come first, best first; remaining
    slots are filled with lexical hits ordered by keyword coverage, then recency.
    """
    ranked: List[Story] = []
    seen: Set[str] = set()

    if query.embedding:
        scored = [
            (cosine_similarity(story.embedding, query.embedding), story)
            for story in stories if story.embedding
        ]
        scored = [(score, story) for score, story in scored if score >= min_similarity]
        scored.sort(key=lambda item: item[0], reverse=True)
        for _, story in scored[:limit]:
            ranked.append(story)
            seen.add(story.id)

    if len(ranked) < limit:
        keywords = extract_keywords(query.text)
        lexical = [
            (lexical_score(story, keywords), story)
            for story in stories if story.id not in seen
        ]
        lexical = [(score, story) for score, story in lexical if score > 0]
        lexical.sort(key=lambda item: (item[0], item[1].updated_at), reverse=True)
        ranked.extend(story for _, story in lexical[:limit - len(ranked)])

    return ranked


class StoryStore(ABC):
    """Durable storage for stories and their version history"""

    @abstractmethod
    async def save_story(self, story: Story) -> Story:
        """Insert a new story"""

    @abstractmethod
    async def get_story_by_id(self, story_id: str, user_id: str) -> Optional[Story]:
        """The user's story, or None"""

    @abstractmethod
    async def update_story(
        self,
        story_id: str,
        user_id: str,
        updates: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Story:
        """
        Apply field updates and refresh updated_at

        Raises:
            VersionConflictError: expected_version is set and differs from the stored version
            PersistenceError: The story does not exist or the write failed
        """

    @abstractmethod
    async def search_stories(self, user_id: str, query: StoryQuery, limit: int = 3) -> List[Story]:
        """Best matching stories of the user, most relevant first"""

    @abstractmethod
    async def record_access(self, story_id: str, user_id: str) -> None:
        """Increment access_count and set last_accessed_at"""

    @abstractmethod
    async def insert_version(self, version: StoryVersion) -> StoryVersion:
        """Append a version snapshot"""

    @abstractmethod
    async def get_versions(self, story_id: str) -> List[StoryVersion]:
        """Version snapshots of a story, oldest first"""

    @abstractmethod
    async def list_stories(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Story]:
        """The user's stories, most recently updated first"""

    @abstractmethod
    async def delete_story(self, story_id: str, user_id: str) -> bool:
        """Delete a story and its versions; False when nothing was deleted"""

    @abstractmethod
    async def get_story_stats(self, user_id: str) -> StoryStats:
        """Aggregate counts over the user's stories"""

    @abstractmethod
    async def get_processed_memory_ids(self, user_id: str) -> Set[str]:
        """Memory ids already consumed by any of the user's stories"""

    @abstractmethod
    def atomic(self):
        """Async context manager grouping writes into one unit"""


def compute_stats(stories: List[Story]) -> StoryStats:
    if not stories:
        return StoryStats()

    people: Set[str] = set()
    places: Set[str] = set()
    events: Set[str] = set()
    for story in stories:
        people.update(story.people)
        places.update(story.places)
        events.update(story.events)

    return StoryStats(
        total_stories=len(stories),
        unique_people=len(people),
        unique_places=len(places),
        unique_events=len(events),
        first_story_at=min(s.created_at for s in stories),
        latest_story_at=max(s.created_at for s in stories),
    )


class InMemoryStoryStore(StoryStore):
    """
    Dict-backed StoryStore

    Stories are copied on the way in and out, so callers never share mutable
    state with the store. atomic() snapshots both tables and restores them when
    the block raises.
    """

    def __init__(self):
        self._stories: Dict[str, Story] = {}
        self._versions: Dict[str, List[StoryVersion]] = {}
        self._next_version_id = 1
        self._atomic_lock = asyncio.Lock()

    def _get_owned(self, story_id: str, user_id: str) -> Optional[Story]:
        story = self._stories.get(story_id)
        if story is None or story.user_id != user_id:
            return None
        return story

    async def save_story(self, story: Story) -> Story:
        if story.id in self._stories:
            raise PersistenceError("Story already exists", story_id=story.id)
        self._stories[story.id] = story.model_copy(deep=True)
        logger.debug(f"InMemoryStoryStore.save_story: {story.id}")
        return story.model_copy(deep=True)

    async def get_story_by_id(self, story_id: str, user_id: str) -> Optional[Story]:
        story = self._get_owned(story_id, user_id)
        return story.model_copy(deep=True) if story else None

    async def update_story(
        self,
        story_id: str,
        user_id: str,
        updates: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Story:
        story = self._get_owned(story_id, user_id)
        if story is None:
            raise PersistenceError("Story not found for update", story_id=story_id, user_id=user_id)
        if expected_version is not None and story.version != expected_version:
            raise VersionConflictError(story_id, expected_version, story.version)

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise PersistenceError("Unknown story fields in update", story_id=story_id, fields=sorted(unknown))

        data = story.model_dump()
        data.update(copy.deepcopy(updates))
        data["updated_at"] = utc_now()
        updated = Story.model_validate(data)
        self._stories[story_id] = updated
        return updated.model_copy(deep=True)

    async def search_stories(self, user_id: str, query: StoryQuery, limit: int = 3) -> List[Story]:
        candidates = [s for s in self._stories.values() if s.user_id == user_id]
        return [s.model_copy(deep=True) for s in rank_stories(candidates, query, limit)]

    async def record_access(self, story_id: str, user_id: str) -> None:
        story = self._get_owned(story_id, user_id)
        if story is None:
            return
        self._stories[story_id] = story.model_copy(update={
            "access_count": story.access_count + 1,
            "last_accessed_at": utc_now(),
        })

    async def insert_version(self, version: StoryVersion) -> StoryVersion:
        history = self._versions.setdefault(version.story_id, [])
        if any(v.version_number == version.version_number for v in history):
            raise PersistenceError(
                "Version already recorded",
                story_id=version.story_id,
                version_number=version.version_number,
            )
        stored = version.model_copy(update={"id": self._next_version_id})
        self._next_version_id += 1
        history.append(stored)
        return stored.model_copy()

    async def get_versions(self, story_id: str) -> List[StoryVersion]:
        history = self._versions.get(story_id, [])
        return [v.model_copy() for v in sorted(history, key=lambda v: v.version_number)]

    async def list_stories(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Story]:
        stories = sorted(
            (s for s in self._stories.values() if s.user_id == user_id),
            key=lambda s: s.updated_at,
            reverse=True,
        )
        return [s.model_copy(deep=True) for s in stories[offset:offset + limit]]

    async def delete_story(self, story_id: str, user_id: str) -> bool:
        if self._get_owned(story_id, user_id) is None:
            return False
        del self._stories[story_id]
        self._versions.pop(story_id, None)
        return True

    async def get_story_stats(self, user_id: str) -> StoryStats:
        return compute_stats([s for s in self._stories.values() if s.user_id == user_id])

    async def get_processed_memory_ids(self, user_id: str) -> Set[str]:
        processed: Set[str] = set()
        for story in self._stories.values():
            if story.user_id == user_id:
                processed.update(story.source_memory_ids)
        return processed

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        async with self._atomic_lock:
            stories_snapshot = dict(self._stories)
            versions_snapshot = {k: list(v) for k, v in self._versions.items()}
            try:
                yield
            except BaseException:
                self._stories = stories_snapshot
                self._versions = versions_snapshot
                raise
