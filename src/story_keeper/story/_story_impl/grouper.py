"""
Topic grouping implementation

@file_name: grouper.py
@date: 2026-10-02
@description: Greedy single-pass clustering of memory records by entity overlap

Algorithm:
1. Seed a group with the first unprocessed memory (input order)
2. Score every later unprocessed memory against the group's accumulated
   people/places/events:
       0.4 * J(people) + 0.3 * J(places) + 0.3 * J(events)
       + 0.2 if a person term shares a synonym key
       + 0.2 if an event term shares a synonym key
   clamped to [0, 1]
3. Score > threshold: the memory joins, its entities are merged into the group,
   and scanning continues against the enlarged group
4. Repeat until every memory is processed

The result depends on input order and groups are never re-merged afterwards.
All state lives inside one group() call.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Set

from loguru import logger

from story_keeper.utils.text import find_years, normalize_term

from ..config import config
from ..models import DateRange, EntityCategory, MemoryPayload, MemoryRecord, TopicGroup
from .synonyms import SynonymIndex


def jaccard(a: Set[str], b: Set[str]) -> float:
    """|A ∩ B| / |A ∪ B|, 0.0 when both sets are empty"""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def _normalized(terms: Iterable[str]) -> Set[str]:
    return {n for n in (normalize_term(t) for t in terms) if n}


class _GroupAccumulator:
    """Entity unions of a group under construction"""

    def __init__(self, seed: MemoryRecord):
        self.memories: List[MemoryRecord] = []
        self.people: Dict[str, None] = {}
        self.places: Dict[str, None] = {}
        self.events: Dict[str, None] = {}
        self.add(seed)

    def add(self, memory: MemoryRecord) -> None:
        self.memories.append(memory)
        payload = memory.payload
        for label in payload.labels(EntityCategory.PEOPLE):
            self.people.setdefault(label, None)
        for label in payload.labels(EntityCategory.PLACES):
            self.places.setdefault(label, None)
        for label in payload.labels(EntityCategory.EVENTS):
            self.events.setdefault(label, None)

    def to_group(self) -> TopicGroup:
        return TopicGroup(
            memories=list(self.memories),
            people=list(self.people),
            places=list(self.places),
            events=list(self.events),
            date_range=compute_date_range(self.memories),
        )


def compute_date_range(memories: Sequence[MemoryRecord]) -> Optional[DateRange]:
    if not memories:
        return None

    created = [m.created_at for m in memories]
    years: List[int] = []
    for memory in memories:
        for label in memory.payload.labels(EntityCategory.DATES):
            years.extend(find_years(label))

    return DateRange(
        start=min(created),
        end=max(created),
        earliest_year=min(years) if years else None,
        latest_year=max(years) if years else None,
    )


class TopicGrouper:
    """
    Clusters memory records into topic groups

    Usage:
        grouper = TopicGrouper()
        groups = grouper.group(memories)
    """

    def __init__(
        self,
        synonyms: Optional[SynonymIndex] = None,
        threshold: Optional[float] = None,
    ):
        self.synonyms = synonyms or SynonymIndex()
        self.threshold = config.GROUPING_THRESHOLD if threshold is None else threshold

    def similarity(
        self,
        people: Iterable[str],
        places: Iterable[str],
        events: Iterable[str],
        candidate: MemoryPayload,
    ) -> float:
        """Topic similarity score between accumulated group entities and a candidate payload"""
        people = list(people)
        events = list(events)
        cand_people = candidate.labels(EntityCategory.PEOPLE)
        cand_places = candidate.labels(EntityCategory.PLACES)
        cand_events = candidate.labels(EntityCategory.EVENTS)

        score = (
            config.PEOPLE_WEIGHT * jaccard(_normalized(people), _normalized(cand_people))
            + config.PLACES_WEIGHT * jaccard(_normalized(places), _normalized(cand_places))
            + config.EVENTS_WEIGHT * jaccard(_normalized(events), _normalized(cand_events))
        )

        if people and cand_people and self.synonyms.share_key(people, cand_people):
            score += config.SYNONYM_BONUS
        if events and cand_events and self.synonyms.share_key(events, cand_events):
            score += config.SYNONYM_BONUS

        return max(0.0, min(1.0, score))

    def group(self, memories: Sequence[MemoryRecord]) -> List[TopicGroup]:
        """
        Partition memories into topic groups

        Every memory ends up in exactly one group; a memory that matches
        nothing forms a singleton group.
        """
        processed: Set[int] = set()
        groups: List[TopicGroup] = []

        for seed_index, seed in enumerate(memories):
            if seed_index in processed:
                continue
            processed.add(seed_index)
            accumulator = _GroupAccumulator(seed)

            for index in range(seed_index + 1, len(memories)):
                if index in processed:
                    continue
                candidate = memories[index]
                score = self.similarity(
                    accumulator.people,
                    accumulator.places,
                    accumulator.events,
                    candidate.payload,
                )
                if score > self.threshold:
                    logger.debug(f"Memory {candidate.id} joins group seeded by {seed.id} (score={score:.2f})")
                    accumulator.add(candidate)
                    processed.add(index)

            groups.append(accumulator.to_group())

        logger.debug(f"Grouped {len(memories)} memories into {len(groups)} topic groups")
        return groups
