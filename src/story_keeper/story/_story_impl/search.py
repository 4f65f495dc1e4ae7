"""
Story search implementation

@file_name: search.py
@date: 2026-10-02
@description: Find stories for a free-text query and phrase the result for the conversation

Flow:
1. Embed the query (optional; lexical-only search when unavailable)
2. StoryStore.search_stories(user_id, StoryQuery{text, embedding}, limit)
3. Bump access stats of every surfaced story (StoryConfig.UPDATE_ACCESS_ON_SEARCH)
4. Build BriefStory entries and a suggested response
"""

from __future__ import annotations

from typing import List, Sequence

from loguru import logger

from story_keeper.utils.exceptions import PersistenceError

from ..config import config
from ..models import BriefStory, Story, StoryQuery, StorySearchResponse
from ..store import StoryStore
from . import messages
from .synthesizer import NarrativeSynthesizer


def to_brief(story: Story) -> BriefStory:
    return BriefStory(
        id=story.id,
        brief_summary=story.brief_summary or story.title,
        title=story.title,
        significance=story.significance_rating,
        tone=story.tone,
        people=story.people[:config.BRIEF_PEOPLE_COUNT],
        dates=story.dates[:config.BRIEF_DATES_COUNT],
    )


def suggested_response(stories: Sequence[Story]) -> str:
    """Conversation line offering the found stories"""
    if len(stories) == 1:
        story = stories[0]
        return messages.SEARCH_SINGLE_HIT.format(brief=story.brief_summary or story.title)

    bullets = "\n".join(
        f"• {s.brief_summary or s.title}" for s in stories[:config.SEARCH_MAX_BULLETS]
    )
    return messages.SEARCH_MULTIPLE_HITS.format(count=len(stories), bullets=bullets)


class StorySearchService:
    """
    Usage:
        search = StorySearchService(store, synthesizer)
        response = await search.search("user_1", "tell me about Ellis Island")
    """

    def __init__(self, store: StoryStore, synthesizer: NarrativeSynthesizer):
        self.store = store
        self.synthesizer = synthesizer

    async def _record_access(self, stories: List[Story], user_id: str) -> None:
        for story in stories:
            try:
                await self.store.record_access(story.id, user_id)
            except PersistenceError as e:
                logger.warning(f"Failed to record access for story {story.id}: {e}")

    async def search(
        self,
        user_id: str,
        query_text: str,
        limit: int = config.SEARCH_DEFAULT_LIMIT,
    ) -> StorySearchResponse:
        embedding = await self.synthesizer.embed_text(query_text, operation="query_embedding")
        query = StoryQuery(text=query_text, embedding=embedding)

        try:
            stories = await self.store.search_stories(user_id, query, limit)
        except PersistenceError as e:
            logger.error(f"Story search failed for user {user_id}: {e}")
            return StorySearchResponse(found=False, error=True, message=messages.SEARCH_FAILED)

        if not stories:
            logger.info(f"No stories found for user {user_id}, query={query_text[:50]!r}")
            return StorySearchResponse(found=False, message=messages.SEARCH_NOTHING_FOUND)

        if config.UPDATE_ACCESS_ON_SEARCH:
            await self._record_access(stories, user_id)

        logger.info(f"Found {len(stories)} stories for user {user_id}")
        return StorySearchResponse(
            found=True,
            stories=[to_brief(s) for s in stories],
            suggested_response=suggested_response(stories),
        )
