"""
Significance scoring

@file_name: scorer.py
@date: 2026-10-02
@description: Inclusion gate and 3-5 significance rating for topic groups
"""

from __future__ import annotations

from typing import Sequence

from ..config import config
from ..models import EntityCategory, MemoryRecord, TopicGroup


def _events_text(memory: MemoryRecord) -> str:
    return " ".join(memory.payload.labels(EntityCategory.EVENTS)).lower()


class SignificanceScorer:
    """Decides which topic groups become stories and how significant they are"""

    def __init__(
        self,
        min_memories: int = config.MIN_MEMORIES_PER_STORY,
        significant_keywords: Sequence[str] = config.SIGNIFICANT_EVENT_KEYWORDS,
        major_keywords: Sequence[str] = config.MAJOR_EVENT_KEYWORDS,
    ):
        self.min_memories = min_memories
        self.significant_keywords = tuple(k.lower() for k in significant_keywords)
        self.major_keywords = tuple(k.lower() for k in major_keywords)

    def has_significant_event(self, group: TopicGroup) -> bool:
        """Any memory's events text contains a significant keyword (case-insensitive substring)"""
        return any(
            keyword in _events_text(memory)
            for memory in group.memories
            for keyword in self.significant_keywords
        )

    def qualifies(self, group: TopicGroup) -> bool:
        return len(group.memories) >= self.min_memories or self.has_significant_event(group)

    def score(self, group: TopicGroup) -> int:
        """
        Significance rating in [BASE_SIGNIFICANCE, MAX_SIGNIFICANCE]

        Starts at the base, +1 for each size threshold exceeded, +1 when the
        group's events mention a major life event.
        """
        rating = config.BASE_SIGNIFICANCE
        size = len(group.memories)
        for threshold in config.SIGNIFICANCE_SIZE_THRESHOLDS:
            if size > threshold:
                rating += 1

        events_text = " ".join(group.events).lower()
        if any(keyword in events_text for keyword in self.major_keywords):
            rating += 1

        return min(config.MAX_SIGNIFICANCE, rating)
