"""
Entity category table and factual content rendering

@file_name: entities.py
@date: 2026-10-02
@description: Per-category item type, heading and renderer

CATEGORY_SPECS is the single lookup table used wherever code needs to treat the
entity categories of a memory payload uniformly (content assembly, label
collection).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Type

from pydantic import BaseModel

from ..models import (
    DateItem,
    EntityCategory,
    EventItem,
    ITEM_TYPES,
    MemoryPayload,
    MemoryRecord,
    PersonItem,
    PlaceItem,
    Relationship,
)


def _with_extras(label: str, extras: Sequence[object]) -> str:
    extras = [str(e) for e in extras if e]
    if not extras:
        return label
    return f"{label} ({', '.join(extras)})"


def render_person(item: PersonItem) -> str:
    return _with_extras(item.label, [item.relationship])


def render_place(item: PlaceItem) -> str:
    return _with_extras(item.label, [item.type])


def render_date(item: DateItem) -> str:
    extras = [item.event] if item.event and item.event != item.label else []
    return _with_extras(item.label, extras)


def render_event(item: EventItem) -> str:
    when = item.date or item.timeframe
    extras = [when, f"at {item.location}" if item.location else None]
    return _with_extras(item.label, extras)


def render_relationship(item: Relationship) -> str:
    return item.label


@dataclass(frozen=True)
class CategorySpec:
    category: EntityCategory
    item_type: Type[BaseModel]
    heading: str  # Line prefix in factual content
    render: Callable[[BaseModel], str]


# Render order of factual content lines
CATEGORY_SPECS: Dict[EntityCategory, CategorySpec] = {
    EntityCategory.EVENTS: CategorySpec(
        EntityCategory.EVENTS, ITEM_TYPES[EntityCategory.EVENTS], "Events", render_event
    ),
    EntityCategory.PEOPLE: CategorySpec(
        EntityCategory.PEOPLE, ITEM_TYPES[EntityCategory.PEOPLE], "People", render_person
    ),
    EntityCategory.PLACES: CategorySpec(
        EntityCategory.PLACES, ITEM_TYPES[EntityCategory.PLACES], "Places", render_place
    ),
    EntityCategory.DATES: CategorySpec(
        EntityCategory.DATES, ITEM_TYPES[EntityCategory.DATES], "When", render_date
    ),
    EntityCategory.RELATIONSHIPS: CategorySpec(
        EntityCategory.RELATIONSHIPS, ITEM_TYPES[EntityCategory.RELATIONSHIPS], "Relationships", render_relationship
    ),
}


def render_payload(payload: MemoryPayload) -> str:
    """
    Render one memory as a block of "Heading: item, item" lines

    Empty categories produce no line; an empty payload produces "".
    """
    lines: List[str] = []
    for category, spec in CATEGORY_SPECS.items():
        items = payload.items(category)
        if items:
            lines.append(f"{spec.heading}: {', '.join(spec.render(item) for item in items)}")
    return "\n".join(lines)


def build_factual_content(memories: Sequence[MemoryRecord]) -> str:
    """
    Deterministic factual content for a set of memories

    Memories are ordered by created_at ascending; blocks are separated by a blank line.
    """
    ordered = sorted(memories, key=lambda m: m.created_at)
    blocks = [render_payload(m.payload) for m in ordered]
    return "\n\n".join(block for block in blocks if block)


def collect_labels(memories: Sequence[MemoryRecord], category: EntityCategory) -> List[str]:
    """Union of a category's labels across memories, in first-seen order"""
    labels: Dict[str, None] = {}
    for memory in memories:
        for label in memory.payload.labels(category):
            labels.setdefault(label, None)
    return list(labels)


def collect_relationships(memories: Sequence[MemoryRecord]) -> List[Relationship]:
    """Relationships across memories, de-duplicated by from/relation/to"""
    seen: Dict[str, Relationship] = {}
    for memory in memories:
        for relationship in memory.payload.relationships:
            seen.setdefault(relationship.key, relationship)
    return list(seen.values())


def merge_labels(existing: Sequence[str], new: Sequence[str]) -> List[str]:
    """Order-preserving, de-duplicated union"""
    return list(dict.fromkeys([*existing, *new]))
