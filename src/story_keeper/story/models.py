"""
@file_name: models.py
@date: 2026-10-02
@description: Data models for the story engine

Data model categories:
1. Entity items: EntityCategory, PersonItem, PlaceItem, DateItem, EventItem, Relationship
2. Memory input: MemoryPayload, MemoryRecord
3. Aggregation: DateRange, TopicGroup, ToneAnalysis, TitleSummary
4. Stories: Story, StoryVersion, Contradiction, ExtractedEntities, StoryQuery
5. Responses: BriefStory, StorySearchResponse, RetellingStory, RetellingResponse,
   AppendResponse, CreateStoryResponse, StoryStats
6. Background processing: ProcessingStatus, UserProcessingState
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type
from uuid import uuid4

from loguru import logger
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from story_keeper.utils.timezone import utc_now


def generate_story_id() -> str:
    return f"story_{uuid4().hex[:16]}"


# =============================================================================
# Entity Items
# =============================================================================

class EntityCategory(Enum):
    """Entity list categories carried by a memory payload"""
    PEOPLE = "people"
    PLACES = "places"
    DATES = "dates"
    EVENTS = "events"
    RELATIONSHIPS = "relationships"


class EntityItem(BaseModel):
    """
    Base for tagged entity items

    An item arrives either as a plain string or as an object. For objects the
    label is taken from the first present key in LABEL_KEYS.
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    LABEL_KEYS: ClassVar[Tuple[str, ...]] = ("name",)

    label: str  # Text used for grouping, merging and story entity lists
    details: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _resolve_label(cls, data: Any) -> Any:
        if isinstance(data, (str, int, float)):
            return {"label": str(data).strip()}
        if isinstance(data, dict) and not data.get("label"):
            for key in cls.LABEL_KEYS:
                value = data.get(key)
                if value not in (None, ""):
                    return {**data, "label": str(value).strip()}
        return data

    @field_validator("label")
    @classmethod
    def _label_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("label cannot be blank")
        return value.strip()


class PersonItem(EntityItem):
    LABEL_KEYS: ClassVar[Tuple[str, ...]] = ("name",)

    relationship: Optional[str] = None  # e.g. "father", "grandfather"


class PlaceItem(EntityItem):
    LABEL_KEYS: ClassVar[Tuple[str, ...]] = ("name", "location", "place")

    type: Optional[str] = None  # city, country, building, ...
    significance: Optional[str] = None
    description: Optional[str] = None


class DateItem(EntityItem):
    LABEL_KEYS: ClassVar[Tuple[str, ...]] = ("value", "date", "timeframe", "event", "description", "name")

    event: Optional[str] = None
    timeframe: Optional[str] = None
    time: Optional[str] = None
    significance: Optional[str] = None


class EventItem(EntityItem):
    LABEL_KEYS: ClassVar[Tuple[str, ...]] = ("description", "event", "name", "title", "type")

    type: Optional[str] = None
    timeframe: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None
    significance: Optional[str] = None


class Relationship(BaseModel):
    """Directed relationship, e.g. Giuseppe is father of Maria"""
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    from_person: str = Field(
        default="",
        validation_alias=AliasChoices("from_person", "from", "person1"),
        serialization_alias="from",
    )
    to_person: str = Field(
        default="",
        validation_alias=AliasChoices("to_person", "to", "person2"),
        serialization_alias="to",
    )
    relation: str = Field(
        default="",
        validation_alias=AliasChoices("relation", "type", "relationship"),
    )
    details: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"relation": data.strip()}
        return data

    @model_validator(mode="after")
    def _not_empty(self) -> "Relationship":
        if not (self.from_person or self.to_person or self.relation):
            raise ValueError("relationship is empty")
        return self

    @property
    def label(self) -> str:
        if self.from_person and self.to_person:
            return f"{self.from_person} is {self.relation or 'related to'} of {self.to_person}"
        return self.relation or self.from_person or self.to_person

    @property
    def key(self) -> str:
        return f"{self.from_person}-{self.relation}-{self.to_person}"


# Item type per category
ITEM_TYPES: Dict[EntityCategory, Type[BaseModel]] = {
    EntityCategory.PEOPLE: PersonItem,
    EntityCategory.PLACES: PlaceItem,
    EntityCategory.DATES: DateItem,
    EntityCategory.EVENTS: EventItem,
    EntityCategory.RELATIONSHIPS: Relationship,
}


def coerce_items(category: EntityCategory, values: Any) -> List[BaseModel]:
    """
    Coerce raw payload values into the category's item type

    Entries that cannot be interpreted (no label, wrong type) are dropped.
    """
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        values = [values]

    item_type = ITEM_TYPES[category]
    items: List[BaseModel] = []
    for value in values:
        if isinstance(value, item_type):
            items.append(value)
            continue
        try:
            items.append(item_type.model_validate(value))
        except ValidationError:
            logger.debug(f"Dropping unreadable {category.value} entry: {value!r}")
    return items


def unique_labels(items: List[Any]) -> List[str]:
    """Labels of items, de-duplicated in order"""
    return list(dict.fromkeys(item.label for item in items if item.label))


# =============================================================================
# Memory Input
# =============================================================================

class MemoryPayload(BaseModel):
    """Structured facts extracted from one conversational turn"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    narrator: Optional[str] = None
    people: List[PersonItem] = []
    places: List[PlaceItem] = []
    dates: List[DateItem] = []
    events: List[EventItem] = []
    relationships: List[Relationship] = []

    @field_validator("people", "places", "dates", "events", "relationships", mode="before")
    @classmethod
    def _coerce(cls, value: Any, info) -> List[BaseModel]:
        return coerce_items(EntityCategory(info.field_name), value)

    def items(self, category: EntityCategory) -> List[Any]:
        return getattr(self, category.value)

    def labels(self, category: EntityCategory) -> List[str]:
        return unique_labels(self.items(category))


class MemoryRecord(BaseModel):
    """
    A timestamped, structured fact set extracted from one conversational turn

    Immutable once created; the engine consumes records and never mutates them.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    conversation_id: str
    created_at: datetime
    user_id: Optional[str] = None
    payload: MemoryPayload = MemoryPayload()


# =============================================================================
# Aggregation
# =============================================================================

class DateRange(BaseModel):
    """Time span covered by a topic group"""
    start: datetime  # Earliest record created_at
    end: datetime  # Latest record created_at
    earliest_year: Optional[int] = None  # Smallest 19xx/20xx year found in date labels
    latest_year: Optional[int] = None


class TopicGroup(BaseModel):
    """
    Memory records judged to be about the same topic

    Transient: exists only for the duration of one aggregation run.
    """
    memories: List[MemoryRecord] = []
    people: List[str] = []  # Union of member people labels, in first-seen order
    places: List[str] = []
    events: List[str] = []
    date_range: Optional[DateRange] = None

    @property
    def memory_ids(self) -> List[str]:
        return [m.id for m in self.memories]


class ToneAnalysis(BaseModel):
    tone: str = "neutral"
    emotional_tags: List[str] = []


class TitleSummary(BaseModel):
    title: str
    summary: str
    brief_summary: str


# =============================================================================
# Stories
# =============================================================================

class PrivacyLevel(Enum):
    PRIVATE = "private"
    FAMILY = "family"
    PUBLIC = "public"


class ChangeType(Enum):
    APPEND = "append"
    EDIT = "edit"
    CLARIFICATION = "clarification"


class Story(BaseModel):
    """
    A durable, narrated, versioned aggregate of memories about one topic

    Field categories:
    - Identity: id, user_id
    - Text: title, content, narrative, summary, brief_summary
    - Search: embedding
    - Entities: people, places, dates, events, relationships
    - Character: emotional_tags, tone, significance_rating, privacy_level
    - Lifecycle: version, is_complete, source_memory_ids, conversation_ids
    - Access: access_count, last_accessed_at
    """
    # ===== Identity =====
    id: str = Field(default_factory=generate_story_id)
    user_id: str

    # ===== Text =====
    title: str
    content: str  # Deterministic factual content
    narrative: str = ""  # First-person prose (falls back to content)
    summary: str = ""
    brief_summary: str = ""

    # ===== Search =====
    embedding: Optional[List[float]] = None

    # ===== Entities =====
    people: List[str] = []
    places: List[str] = []
    dates: List[str] = []
    events: List[str] = []
    relationships: List[Relationship] = []

    # ===== Character =====
    emotional_tags: List[str] = []
    tone: str = "neutral"
    significance_rating: int = Field(default=3, ge=1, le=5)
    privacy_level: PrivacyLevel = PrivacyLevel.PRIVATE

    # ===== Lifecycle =====
    version: int = Field(default=1, ge=1)
    is_complete: bool = False
    source_memory_ids: List[str] = []
    conversation_ids: List[str] = []

    # ===== Access =====
    access_count: int = 0
    last_accessed_at: Optional[datetime] = None

    # ===== Metadata =====
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("source_memory_ids", "conversation_ids")
    @classmethod
    def _dedupe(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    @property
    def text(self) -> str:
        """Narrative when present, factual content otherwise"""
        return self.narrative or self.content


class StoryVersion(BaseModel):
    """
    Append-only snapshot of a story taken immediately before a mutation
    """
    id: Optional[int] = None  # Auto-increment id assigned by the store
    story_id: str
    version_number: int  # Version of the story this snapshot captures
    content: str
    narrative: str = ""
    change_type: ChangeType = ChangeType.APPEND
    change_summary: str = ""
    created_at: datetime = Field(default_factory=utc_now)


class Contradiction(BaseModel):
    type: str = "date"
    original: str
    new: str
    message: str


class ExtractedEntities(BaseModel):
    """Entities re-extracted from freeform text"""
    model_config = ConfigDict(extra="ignore")

    people: List[str] = []
    places: List[str] = []
    events: List[str] = []
    dates: List[str] = []

    @field_validator("people", "places", "events", "dates", mode="before")
    @classmethod
    def _labels(cls, value: Any, info) -> List[str]:
        return unique_labels(coerce_items(EntityCategory(info.field_name), value))

    @property
    def is_empty(self) -> bool:
        return not (self.people or self.places or self.events or self.dates)


class StoryQuery(BaseModel):
    """Search request handed to StoryStore.search_stories"""
    text: str
    embedding: Optional[List[float]] = None


# =============================================================================
# Responses
# =============================================================================

class BriefStory(BaseModel):
    """Compact story description surfaced by search"""
    id: str
    brief_summary: str
    title: str
    significance: int
    tone: str
    people: List[str] = []  # At most 3
    dates: List[str] = []  # At most 2


class StorySearchResponse(BaseModel):
    found: bool
    stories: List[BriefStory] = []
    message: str = ""  # Set when nothing was found or search failed
    suggested_response: Optional[str] = None  # Set when stories were found
    error: bool = False


class RetellingStory(BaseModel):
    id: str
    title: str
    narrative: str
    tone: str
    emotional_tags: List[str] = []
    people: List[str] = []
    places: List[str] = []
    dates: List[str] = []
    events: List[str] = []


class RetellingResponse(BaseModel):
    success: bool
    story: Optional[RetellingStory] = None
    message: Optional[str] = None


class AppendState(Enum):
    """States of the append-and-version workflow"""
    STABLE = "stable"
    CONTRADICTION_CHECK = "contradiction_check"
    BLOCKED = "blocked"
    PROCEEDING = "proceeding"
    RESYNTHESIZE = "resynthesize"
    ENTITY_MERGE = "entity_merge"
    PERSIST = "persist"
    FAILED = "failed"


class AppendResponse(BaseModel):
    success: bool
    message: str
    state: AppendState
    needs_clarification: bool = False
    contradictions: List[Contradiction] = []
    story: Optional[Story] = None  # Updated story on success


class CreateStoryResponse(BaseModel):
    success: bool
    message: str
    story_id: Optional[str] = None


class StoryStats(BaseModel):
    total_stories: int = 0
    unique_people: int = 0
    unique_places: int = 0
    unique_events: int = 0
    first_story_at: Optional[datetime] = None
    latest_story_at: Optional[datetime] = None


# =============================================================================
# Background Processing
# =============================================================================

class ProcessingStatus(Enum):
    IDLE = "idle"
    PENDING = "pending"
    PROCESSING = "processing"
    WAITING = "waiting"  # Not enough unprocessed memories yet
    COMPLETED = "completed"
    ERROR = "error"


class UserProcessingState(BaseModel):
    """Per-user state tracked by StoryProcessor"""
    status: ProcessingStatus = ProcessingStatus.IDLE
    conversation_ids: List[str] = []  # Conversations queued since the last run
    last_processed: Optional[datetime] = None
    stories_created: int = 0
    last_error: Optional[str] = None
