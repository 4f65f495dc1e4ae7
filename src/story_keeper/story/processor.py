"""
StoryProcessor - Background story aggregation

@file_name: processor.py
@date: 2026-10-02
@description: Queue users with new memories and aggregate their unprocessed memories into stories

=============================================================================
Overview
=============================================================================

Per-user queue entry (UserProcessingState):
    idle -> pending (queue_user) -> processing -> completed
                                              -> waiting  (fewer than MIN_MEMORIES_PER_STORY)
                                              -> error    (exception during the run)

A memory counts as processed once its id appears in the source_memory_ids of
any of the user's stories; no separate "processed" flag is stored.

Triggers:
1. on_memory_saved(): queue the user and process immediately when enough
   unprocessed memories of that conversation exist
2. start(): periodic loop calling process_queued_users() every
   StoryConfig.PROCESSOR_INTERVAL_SECONDS

Usage:
    processor = StoryProcessor(service, memory_source)
    await processor.on_memory_saved("user_1", "conv_1")

    await processor.start()  # periodic loop in the background
    ...
    await processor.stop()
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from loguru import logger

from story_keeper.utils.timezone import utc_now

from .config import config
from .models import MemoryRecord, ProcessingStatus, UserProcessingState
from .story_service import StoryService


@runtime_checkable
class MemorySource(Protocol):
    """Where memory records come from (the upstream extraction step)"""

    async def get_memories(
        self,
        user_id: str,
        conversation_ids: Optional[Iterable[str]] = None,
        limit: int = 100,
    ) -> List[MemoryRecord]:
        """
        Memory records of a user, most recent first

        Args:
            user_id: Owner of the memories
            conversation_ids: Restrict to these conversations (all when empty or None)
            limit: Maximum number of records
        """
        ...


class StoryProcessor:
    """Background queue that turns accumulated memories into stories"""

    def __init__(
        self,
        service: StoryService,
        memory_source: MemorySource,
        interval_seconds: float = config.PROCESSOR_INTERVAL_SECONDS,
        batch_size: int = config.PROCESSOR_BATCH_SIZE,
        min_memories: int = config.MIN_MEMORIES_PER_STORY,
    ):
        self.service = service
        self.memory_source = memory_source
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self.min_memories = min_memories

        self._queue: Dict[str, UserProcessingState] = {}
        self._loop_task: Optional[asyncio.Task] = None
        self.running = False

    # =========================================================================
    # Queue
    # =========================================================================

    def queue_user(self, user_id: str, conversation_id: Optional[str] = None) -> UserProcessingState:
        state = self._queue.setdefault(user_id, UserProcessingState())
        if conversation_id and conversation_id not in state.conversation_ids:
            state.conversation_ids.append(conversation_id)
        state.status = ProcessingStatus.PENDING
        return state

    def get_status(self, user_id: str) -> UserProcessingState:
        """Processing state of a user; idle when never queued"""
        state = self._queue.get(user_id)
        return state.model_copy(deep=True) if state else UserProcessingState()

    # =========================================================================
    # Processing
    # =========================================================================

    async def get_unprocessed_memories(
        self,
        user_id: str,
        conversation_ids: Optional[Iterable[str]] = None,
    ) -> List[MemoryRecord]:
        """Memories of a user not yet included in any story, oldest first"""
        memories = await self.memory_source.get_memories(
            user_id, list(conversation_ids or []), self.batch_size
        )
        processed = await self.service.store.get_processed_memory_ids(user_id)
        unprocessed = [m for m in memories if m.id not in processed]
        return sorted(unprocessed, key=lambda m: m.created_at)

    async def process_user(self, user_id: str) -> UserProcessingState:
        """Aggregate the user's unprocessed memories into stories"""
        state = self._queue.setdefault(user_id, UserProcessingState())
        state.status = ProcessingStatus.PROCESSING
        logger.info(f"Processing stories for user {user_id}")

        try:
            memories = await self.get_unprocessed_memories(user_id, state.conversation_ids)

            if len(memories) < self.min_memories:
                logger.info(f"Not enough memories to process ({len(memories)} < {self.min_memories})")
                state.status = ProcessingStatus.WAITING
                return state.model_copy(deep=True)

            stories = await self.service.auto_create_stories(memories, user_id)

            state.stories_created += len(stories)
            state.status = ProcessingStatus.COMPLETED
            state.last_processed = utc_now()
            state.last_error = None
            state.conversation_ids = []
            logger.info(f"Created {len(stories)} stories from {len(memories)} memories for user {user_id}")

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error processing stories for user {user_id}: {e}")
            state.status = ProcessingStatus.ERROR
            state.last_error = str(e)

        return state.model_copy(deep=True)

    async def process_queued_users(self) -> int:
        """Process every pending user; returns how many were processed"""
        pending = [uid for uid, s in self._queue.items() if s.status == ProcessingStatus.PENDING]
        for user_id in pending:
            await self.process_user(user_id)
        return len(pending)

    async def on_memory_saved(self, user_id: str, conversation_id: str) -> UserProcessingState:
        """Queue the user and process right away when the conversation has enough new memories"""
        logger.debug(f"New memory saved for user {user_id}, queuing for story processing")
        self.queue_user(user_id, conversation_id)

        memories = await self.get_unprocessed_memories(user_id, [conversation_id])
        if len(memories) >= self.min_memories:
            logger.info(f"Triggering immediate story processing for user {user_id}")
            return await self.process_user(user_id)
        return self.get_status(user_id)

    # =========================================================================
    # Lifecycle management
    # =========================================================================

    async def _run_loop(self) -> None:
        while self.running:
            try:
                processed = await self.process_queued_users()
                if processed:
                    logger.debug(f"Processed {processed} queued users")
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                logger.debug("Story processor loop cancelled")
                break
            except Exception as e:
                logger.error(f"Story processor loop error: {e}")
                await asyncio.sleep(self.interval_seconds)

    async def start(self) -> None:
        """Start the periodic loop as a background task"""
        if self._loop_task is not None:
            return
        self.running = True
        self._loop_task = asyncio.create_task(self._run_loop())
        logger.info(f"Story processor started (interval={self.interval_seconds}s)")

    async def stop(self) -> None:
        self.running = False
        if self._loop_task is None:
            return
        self._loop_task.cancel()
        await asyncio.gather(self._loop_task, return_exceptions=True)
        self._loop_task = None
        logger.info("Story processor stopped")
