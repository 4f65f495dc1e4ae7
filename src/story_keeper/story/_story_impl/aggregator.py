"""
Story aggregation implementation

@file_name: aggregator.py
@date: 2026-10-02
@description: Turn a batch of memory records into persisted stories

Workflow per run:
1. TopicGrouper.group(memories)
2. Keep groups passing the SignificanceScorer inclusion gate
3. Per kept group: tone -> factual content -> narrative -> title/summaries
   -> significance -> embedding -> StoryStore.save_story

A group whose story cannot be saved is logged and skipped; the remaining
groups are still processed. Creation is not transactional across groups.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from loguru import logger

from story_keeper.utils.exceptions import PersistenceError

from ..models import EntityCategory, MemoryRecord, PrivacyLevel, Story, TopicGroup
from ..store import StoryStore
from .entities import collect_labels, collect_relationships
from .grouper import TopicGrouper
from .scorer import SignificanceScorer
from .synthesizer import NarrativeSynthesizer
from .tone import ToneAnalyzer, memory_facts_text


class StoryAggregator:
    """
    Builds stories out of topic groups

    Usage:
        aggregator = StoryAggregator(store, synthesizer, tone_analyzer)
        stories = await aggregator.run(memories, user_id="user_1")
    """

    def __init__(
        self,
        store: StoryStore,
        synthesizer: NarrativeSynthesizer,
        tone_analyzer: ToneAnalyzer,
        grouper: Optional[TopicGrouper] = None,
        scorer: Optional[SignificanceScorer] = None,
    ):
        self.store = store
        self.synthesizer = synthesizer
        self.tone_analyzer = tone_analyzer
        self.grouper = grouper or TopicGrouper()
        self.scorer = scorer or SignificanceScorer()

    async def build_story(self, group: TopicGroup, user_id: str) -> Story:
        """Synthesize an unsaved Story for one topic group"""
        memories = group.memories

        analysis = await self.tone_analyzer.analyze(memory_facts_text(memories))
        content = self.synthesizer.build_content(memories)
        narrative = await self.synthesizer.generate_narrative(content, analysis.tone)
        titles = await self.synthesizer.generate_title_and_summaries(
            narrative, group.people, group.places, group.events
        )
        embedding = await self.synthesizer.embed_story(narrative, titles.summary)

        return Story(
            user_id=user_id,
            title=titles.title,
            content=content,
            narrative=narrative,
            summary=titles.summary,
            brief_summary=titles.brief_summary,
            embedding=embedding,
            people=list(group.people),
            places=list(group.places),
            dates=collect_labels(memories, EntityCategory.DATES),
            events=list(group.events),
            relationships=collect_relationships(memories),
            emotional_tags=analysis.emotional_tags,
            tone=analysis.tone,
            significance_rating=self.scorer.score(group),
            privacy_level=PrivacyLevel.PRIVATE,
            version=1,
            is_complete=False,
            source_memory_ids=group.memory_ids,
            conversation_ids=[m.conversation_id for m in memories],
        )

    async def run(self, memories: Sequence[MemoryRecord], user_id: str) -> List[Story]:
        if not memories:
            return []

        groups = self.grouper.group(memories)
        eligible = [g for g in groups if self.scorer.qualifies(g)]
        logger.info(
            f"Aggregating {len(memories)} memories for user {user_id}: "
            f"{len(groups)} topic groups, {len(eligible)} eligible"
        )

        stories: List[Story] = []
        for group in eligible:
            story = await self.build_story(group, user_id)
            try:
                saved = await self.store.save_story(story)
            except PersistenceError as e:
                logger.error(f"Failed to save story for group {group.memory_ids}: {e}")
                continue
            logger.info(f"Created story {saved.id}: {saved.title!r} ({len(group.memories)} memories)")
            stories.append(saved)

        return stories
