"""
@file_name: database_store.py
@date: 2026-10-02
@description: MySQL-backed StoryStore (aiomysql via AsyncDatabaseClient)

Tables are created by utils/database_table_management/create_story_tables.py.

Driver errors are wrapped into PersistenceError; an update whose optimistic
version guard matches no row is reported as VersionConflictError.

Usage:
    db = await get_db_client()
    store = DatabaseStoryStore(db)
    service = StoryService(store, text_generator, embedder)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, AsyncIterator, Dict, List, Optional, Set

import aiomysql
from loguru import logger

from story_keeper.repository import StoryRepository, StoryVersionRepository
from story_keeper.utils.database import AsyncDatabaseClient
from story_keeper.utils.exceptions import PersistenceError, StoryKeeperError, VersionConflictError
from story_keeper.utils.text import extract_keywords

from .config import config
from .models import Story, StoryQuery, StoryStats, StoryVersion
from .store import UPDATABLE_FIELDS, StoryStore, compute_stats, lexical_score


def _wrap_driver_errors(operation: str):
    """Re-raise driver and decoding errors of a store method as PersistenceError"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except StoryKeeperError:
                raise
            except (aiomysql.MySQLError, OSError, ValueError) as e:
                logger.error(f"Story store {operation} failed: {e}")
                raise PersistenceError(f"Story store {operation} failed", cause=e) from e
        return wrapper
    return decorator


class DatabaseStoryStore(StoryStore):
    """StoryStore over the `stories` and `story_versions` tables"""

    def __init__(self, db_client: Optional[AsyncDatabaseClient] = None):
        self._db = db_client or AsyncDatabaseClient()
        self._stories = StoryRepository(self._db)
        self._versions = StoryVersionRepository(self._db)

    @_wrap_driver_errors("save_story")
    async def save_story(self, story: Story) -> Story:
        await self._stories.insert(story)
        logger.debug(f"DatabaseStoryStore.save_story: {story.id}")
        return story

    @_wrap_driver_errors("get_story_by_id")
    async def get_story_by_id(self, story_id: str, user_id: str) -> Optional[Story]:
        return await self._stories.get_for_user(story_id, user_id)

    @_wrap_driver_errors("update_story")
    async def update_story(
        self,
        story_id: str,
        user_id: str,
        updates: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Story:
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise PersistenceError("Unknown story fields in update", story_id=story_id, fields=sorted(unknown))

        affected = await self._stories.update_fields(story_id, user_id, updates, expected_version)
        current = await self._stories.get_for_user(story_id, user_id)
        if current is None:
            raise PersistenceError("Story not found for update", story_id=story_id, user_id=user_id)
        if affected == 0 and expected_version is not None:
            raise VersionConflictError(story_id, expected_version, current.version)
        return current

    @_wrap_driver_errors("search_stories")
    async def search_stories(self, user_id: str, query: StoryQuery, limit: int = 3) -> List[Story]:
        ranked: List[Story] = []
        seen: Set[str] = set()

        if query.embedding:
            for story, _score in await self._stories.semantic_candidates(
                user_id, query.embedding, limit, config.SEMANTIC_MIN_SIMILARITY
            ):
                ranked.append(story)
                seen.add(story.id)

        if len(ranked) < limit:
            keywords = extract_keywords(query.text)
            candidates = [
                s for s in await self._stories.lexical_candidates(user_id, keywords)
                if s.id not in seen
            ]
            candidates.sort(key=lambda s: (lexical_score(s, keywords), s.updated_at), reverse=True)
            ranked.extend(candidates[:limit - len(ranked)])

        return ranked

    @_wrap_driver_errors("record_access")
    async def record_access(self, story_id: str, user_id: str) -> None:
        await self._stories.increment_access(story_id, user_id)

    @_wrap_driver_errors("insert_version")
    async def insert_version(self, version: StoryVersion) -> StoryVersion:
        try:
            row_id = await self._versions.insert(version)
        except aiomysql.IntegrityError as e:
            raise PersistenceError(
                "Version already recorded",
                cause=e,
                story_id=version.story_id,
                version_number=version.version_number,
            ) from e
        return version.model_copy(update={"id": row_id})

    @_wrap_driver_errors("get_versions")
    async def get_versions(self, story_id: str) -> List[StoryVersion]:
        return await self._versions.list_for_story(story_id)

    @_wrap_driver_errors("list_stories")
    async def list_stories(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Story]:
        return await self._stories.list_for_user(user_id, limit=limit, offset=offset)

    @_wrap_driver_errors("delete_story")
    async def delete_story(self, story_id: str, user_id: str) -> bool:
        async with self._db.transaction():
            deleted = await self._stories.delete_where({"story_id": story_id, "user_id": user_id})
            if deleted:
                await self._versions.delete_for_story(story_id)
        return deleted > 0

    @_wrap_driver_errors("get_story_stats")
    async def get_story_stats(self, user_id: str) -> StoryStats:
        return compute_stats(await self._stories.all_for_user(user_id))

    @_wrap_driver_errors("get_processed_memory_ids")
    async def get_processed_memory_ids(self, user_id: str) -> Set[str]:
        return set(await self._stories.memory_ids_for_user(user_id))

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        # Covers acquire, BEGIN and COMMIT, which run outside any wrapped method
        try:
            async with self._db.transaction():
                yield
        except StoryKeeperError:
            raise
        except (aiomysql.MySQLError, OSError) as e:
            logger.error(f"Story store transaction failed: {e}")
            raise PersistenceError("Story store transaction failed", cause=e) from e

    async def close(self) -> None:
        await self._db.close()
