"""
@file_name: story_service.py
@date: 2026-10-02
@description: Story service protocol layer

This is the public interface of the story engine; all concrete implementations
are delegated to the _story_impl module.

Features:
1. auto_create_stories() - Aggregate memory records into stories
2. search_user_stories() - Find stories for a free-text query
3. get_story_for_retelling() - Full narrative of one story
4. append_to_story() - Extend a story with new information (versioned)
5. create_story_from_conversation() - Story from direct narration
6. Story management: list, delete, stats, version history

Concurrency:
- Aggregation is serialized per user (two runs over the same memories would
  otherwise create duplicate stories)
- Appends are serialized per story id
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union

from loguru import logger

from story_keeper.capabilities.protocols import EmbeddingService, TextGenerationService
from story_keeper.utils.exceptions import PersistenceError, StoryValidationError
from story_keeper.utils.locks import KeyedLock

from .config import config
from .models import (
    AppendResponse,
    CreateStoryResponse,
    ExtractedEntities,
    MemoryRecord,
    RetellingResponse,
    RetellingStory,
    Story,
    StorySearchResponse,
    StoryStats,
    StoryVersion,
)
from .store import StoryStore
from ._story_impl import (
    ContradictionDetector,
    EntityExtractor,
    NarrativeSynthesizer,
    SignificanceScorer,
    StoryAggregator,
    StorySearchService,
    StoryVersionManager,
    ToneAnalyzer,
    TopicGrouper,
)
from ._story_impl import messages


class StoryService:
    """
    Story Unified Service - Main interface for the conversation layer

    This is a protocol layer; all concrete implementations are delegated to the _story_impl module.

    Capabilities are optional: without a text generator every synthesis step
    uses its deterministic fallback, without an embedder search is lexical only.

    Usage:
        >>> service = StoryService(InMemoryStoryStore(), OpenAITextGenerator(), EmbeddingClient())
        >>> stories = await service.auto_create_stories(memories, user_id="user_1")
        >>> found = await service.search_user_stories("user_1", "Ellis Island")
        >>> await service.append_to_story(found.stories[0].id, "user_1", "We stayed there three days")
    """

    def __init__(
        self,
        store: StoryStore,
        text_generator: Optional[TextGenerationService] = None,
        embedder: Optional[EmbeddingService] = None,
        llm_timeout: Optional[float] = None,
        embedding_timeout: Optional[float] = None,
        grouper: Optional[TopicGrouper] = None,
        scorer: Optional[SignificanceScorer] = None,
    ):
        self.store = store

        # Implementation modules
        self._synthesizer = NarrativeSynthesizer(
            text_generator,
            embedder,
            llm_timeout=llm_timeout,
            embedding_timeout=embedding_timeout,
        )
        self._tone_analyzer = ToneAnalyzer(text_generator, timeout=llm_timeout)
        self._extractor = EntityExtractor(text_generator, timeout=llm_timeout)
        self._aggregator = StoryAggregator(
            store,
            self._synthesizer,
            self._tone_analyzer,
            grouper=grouper,
            scorer=scorer,
        )
        self._search = StorySearchService(store, self._synthesizer)
        self._versions = StoryVersionManager(
            store,
            self._synthesizer,
            self._extractor,
            ContradictionDetector(self._extractor),
        )

        self._user_locks = KeyedLock("user")
        self._story_locks = KeyedLock("story")

        logger.info(
            f"StoryService initialized (text_generation={text_generator is not None}, "
            f"embedding={embedder is not None})"
        )

    # =========================================================================
    # Aggregation
    # =========================================================================

    async def auto_create_stories(self, memories: Sequence[MemoryRecord], user_id: str) -> List[Story]:
        """
        Group memories by topic and persist a story for every significant group

        Memories already consumed by a saved story are skipped. The check runs
        under the per-user lock, so concurrent runs over the same memories save
        each story once.

        Args:
            memories: Memory records of one user, in the order they should be clustered
            user_id: Owner of the stories

        Returns:
            List[Story]: Stories that were saved (empty when nothing qualified)

        Raises:
            PersistenceError: the already-processed memory ids could not be loaded
        """
        if not user_id:
            raise StoryValidationError("user_id is required to create stories")
        if not memories:
            return []

        async with self._user_locks.hold(user_id):
            processed = await self.store.get_processed_memory_ids(user_id)
            pending = [m for m in memories if m.id not in processed]
            if len(pending) < len(memories):
                logger.debug(f"Skipping {len(memories) - len(pending)} already processed memories for user {user_id}")
            stories = await self._aggregator.run(pending, user_id) if pending else []

        if stories:
            logger.success(f"Created {len(stories)} stories from {len(pending)} memories for user {user_id}")
        else:
            logger.info(f"No stories created from {len(pending)} memories for user {user_id}")
        return stories

    # =========================================================================
    # Search & Retelling
    # =========================================================================

    async def search_user_stories(
        self,
        user_id: str,
        query_text: str,
        limit: int = config.SEARCH_DEFAULT_LIMIT,
    ) -> StorySearchResponse:
        return await self._search.search(user_id, query_text, limit)

    async def get_story_for_retelling(self, story_id: str, user_id: str) -> RetellingResponse:
        """Full narrative of a story (factual content when no narrative exists)"""
        try:
            story = await self.store.get_story_by_id(story_id, user_id)
        except PersistenceError as e:
            logger.error(f"Failed to retrieve story {story_id}: {e}")
            return RetellingResponse(success=False, message=messages.RETELL_FAILED)

        if story is None:
            return RetellingResponse(success=False, message=messages.RETELL_NOT_FOUND)

        try:
            await self.store.record_access(story_id, user_id)
        except PersistenceError as e:
            logger.warning(f"Failed to record access for story {story_id}: {e}")

        return RetellingResponse(
            success=True,
            story=RetellingStory(
                id=story.id,
                title=story.title,
                narrative=story.text,
                tone=story.tone,
                emotional_tags=story.emotional_tags,
                people=story.people,
                places=story.places,
                dates=story.dates,
                events=story.events,
            ),
        )

    # =========================================================================
    # Append
    # =========================================================================

    async def append_to_story(
        self,
        story_id: str,
        user_id: str,
        new_information: str,
        check_contradictions: bool = True,
    ) -> AppendResponse:
        """
        Weave new information into an existing story and bump its version

        Returns needs_clarification=True (and changes nothing) when the new
        information contradicts the story's dates and check_contradictions is on.

        Raises:
            StoryValidationError: story_id, user_id or new_information is missing
        """
        if not story_id or not user_id:
            raise StoryValidationError("story_id and user_id are required to append", story_id=story_id)
        if not new_information or not new_information.strip():
            raise StoryValidationError("new_information is required to append", story_id=story_id)

        async with self._story_locks.hold(story_id):
            return await self._versions.append(
                story_id, user_id, new_information.strip(), check_contradictions
            )

    # =========================================================================
    # Direct creation
    # =========================================================================

    async def create_story_from_conversation(
        self,
        user_id: str,
        title: str,
        content: str,
        entities: Optional[Union[ExtractedEntities, Dict[str, Any]]] = None,
    ) -> CreateStoryResponse:
        """
        Create a story the user narrated directly

        Raises:
            StoryValidationError: user_id, title or content is missing
        """
        if not user_id:
            raise StoryValidationError("user_id is required to create a story")
        if not title or not title.strip() or not content or not content.strip():
            raise StoryValidationError("title and content are required to create a story", user_id=user_id)

        if not isinstance(entities, ExtractedEntities):
            entities = ExtractedEntities.model_validate(entities or {})

        title = title.strip()
        story = Story(
            user_id=user_id,
            title=title,
            content=content,
            narrative=content,
            brief_summary=title[:config.BRIEF_SUMMARY_MAX_LENGTH],
            summary=content[:config.SUMMARY_MAX_LENGTH],
            embedding=await self._synthesizer.embed_text(f"{content} {title}", operation="story_embedding"),
            people=entities.people,
            places=entities.places,
            dates=entities.dates,
            events=entities.events,
            tone=config.DEFAULT_TONE,
            significance_rating=config.BASE_SIGNIFICANCE,
        )

        try:
            saved = await self.store.save_story(story)
        except PersistenceError as e:
            logger.error(f"Failed to create story for user {user_id}: {e}")
            return CreateStoryResponse(success=False, message=messages.CREATE_FAILED)

        logger.info(f"Created story {saved.id} from conversation: {title!r}")
        return CreateStoryResponse(
            success=True,
            message=messages.CREATE_SUCCESS.format(title=title),
            story_id=saved.id,
        )

    # =========================================================================
    # Story management
    # =========================================================================

    async def list_stories(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Story]:
        return await self.store.list_stories(user_id, limit=limit, offset=offset)

    async def delete_story(self, story_id: str, user_id: str) -> bool:
        async with self._story_locks.hold(story_id):
            deleted = await self.store.delete_story(story_id, user_id)
        if deleted:
            logger.info(f"Deleted story {story_id}")
        return deleted

    async def get_story_stats(self, user_id: str) -> StoryStats:
        return await self.store.get_story_stats(user_id)

    async def get_story_versions(self, story_id: str, user_id: str) -> List[StoryVersion]:
        """Version history of a story owned by user_id, oldest first (empty when it cannot be read)"""
        try:
            story = await self.store.get_story_by_id(story_id, user_id)
            if story is None:
                return []
            return await self.store.get_versions(story_id)
        except PersistenceError as e:
            logger.error(f"Failed to retrieve versions of story {story_id}: {e}")
            return []
