"""
Append-and-version workflow

@file_name: versioning.py
@date: 2026-10-02
@description: Extend an existing story with new information, keeping its version history

State machine:
    STABLE -> CONTRADICTION_CHECK -> BLOCKED                       (needs clarification, nothing written)
                                  -> PROCEEDING -> RESYNTHESIZE
                                     -> ENTITY_MERGE -> PERSIST -> STABLE (version + 1)
    any store failure -> FAILED

Persistence writes a StoryVersion capturing the pre-append content and
narrative, then updates the story with version + 1 under an optimistic
expected_version check, both inside StoryStore.atomic().

The caller is expected to serialize appends per story (StoryService holds a
per-story lock around append()).
"""

from __future__ import annotations

from typing import Any, Dict

from loguru import logger

from story_keeper.utils.exceptions import PersistenceError

from ..config import config
from ..models import AppendResponse, AppendState, ChangeType, Story, StoryVersion
from ..store import StoryStore
from . import messages
from .contradiction import ContradictionDetector, format_clarification
from .entities import merge_labels
from .entity_extractor import EntityExtractor
from .synthesizer import NarrativeSynthesizer


def change_summary(new_information: str) -> str:
    return f"Added new information: {new_information[:config.CHANGE_SUMMARY_PREVIEW_CHARS]}..."


def snapshot(story: Story, change_type: ChangeType, summary: str) -> StoryVersion:
    """Version row capturing the story as it is before a mutation"""
    return StoryVersion(
        story_id=story.id,
        version_number=story.version,
        content=story.content,
        narrative=story.narrative,
        change_type=change_type,
        change_summary=summary,
    )


class StoryVersionManager:
    """Owns the append lifecycle of existing stories"""

    def __init__(
        self,
        store: StoryStore,
        synthesizer: NarrativeSynthesizer,
        extractor: EntityExtractor,
        detector: ContradictionDetector,
    ):
        self.store = store
        self.synthesizer = synthesizer
        self.extractor = extractor
        self.detector = detector

    async def append(
        self,
        story_id: str,
        user_id: str,
        new_information: str,
        check_contradictions: bool = True,
    ) -> AppendResponse:
        try:
            story = await self.store.get_story_by_id(story_id, user_id)
        except PersistenceError as e:
            logger.error(f"Failed to load story {story_id} for append: {e}")
            return AppendResponse(success=False, message=messages.APPEND_FAILED, state=AppendState.FAILED)

        if story is None:
            return AppendResponse(success=False, message=messages.APPEND_NOT_FOUND, state=AppendState.STABLE)

        # Extracted once; feeds both the contradiction check and the entity merge
        entities = await self.extractor.extract(new_information)

        if check_contradictions:
            contradictions = await self.detector.detect(story, new_information, entities=entities)
            if contradictions:
                logger.info(f"Append to story {story_id} blocked pending clarification")
                return AppendResponse(
                    success=False,
                    needs_clarification=True,
                    contradictions=contradictions,
                    message=format_clarification(contradictions),
                    state=AppendState.BLOCKED,
                )

        narrative = await self.synthesizer.weave(story.text, new_information, story.tone)

        updates: Dict[str, Any] = {
            "narrative": narrative,
            "people": merge_labels(story.people, entities.people),
            "places": merge_labels(story.places, entities.places),
            "events": merge_labels(story.events, entities.events),
            "dates": merge_labels(story.dates, entities.dates),
            "version": story.version + 1,
        }

        embedding = await self.synthesizer.embed_story(narrative, story.summary)
        if embedding is not None:
            updates["embedding"] = embedding

        try:
            async with self.store.atomic():
                await self.store.insert_version(
                    snapshot(story, ChangeType.APPEND, change_summary(new_information))
                )
                updated = await self.store.update_story(
                    story_id, user_id, updates, expected_version=story.version
                )
        except PersistenceError as e:
            logger.error(f"Failed to persist append to story {story_id}: {e}")
            return AppendResponse(success=False, message=messages.APPEND_FAILED, state=AppendState.FAILED)

        logger.info(f"Story {story_id} extended to version {updated.version}")
        return AppendResponse(
            success=True,
            message=messages.APPEND_SUCCESS,
            state=AppendState.STABLE,
            story=updated,
        )
