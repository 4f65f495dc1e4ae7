"""
@file_name: __init__.py
@date: 2026-10-02
@description: Unified exports for the story package

Module structure:
    story/
    ├── __init__.py           # This file - unified exports
    ├── models.py             # Data models
    ├── config.py             # Tunable parameters
    ├── store.py              # StoryStore contract + in-memory store
    ├── database_store.py     # MySQL-backed store (import directly)
    ├── story_service.py      # Story service (protocol layer)
    ├── story_tool.py         # story_manager tool for the conversation agent
    ├── processor.py          # Background aggregation queue
    └── _story_impl/          # Implementation (private)

database_store is not re-exported here: it depends on story_keeper.repository,
which itself imports story.models.

Usage:
    >>> from story_keeper.story import StoryService, InMemoryStoryStore
    >>> service = StoryService(InMemoryStoryStore())
"""

# =============================================================================
# Data Models
# =============================================================================
from .models import (
    # Entity items
    EntityCategory,
    PersonItem,
    PlaceItem,
    DateItem,
    EventItem,
    Relationship,
    # Memory input
    MemoryPayload,
    MemoryRecord,
    # Aggregation
    DateRange,
    TopicGroup,
    ToneAnalysis,
    TitleSummary,
    # Stories
    PrivacyLevel,
    ChangeType,
    Story,
    StoryVersion,
    Contradiction,
    ExtractedEntities,
    StoryQuery,
    # Responses
    BriefStory,
    StorySearchResponse,
    RetellingStory,
    RetellingResponse,
    AppendState,
    AppendResponse,
    CreateStoryResponse,
    StoryStats,
    # Background processing
    ProcessingStatus,
    UserProcessingState,
)

# =============================================================================
# Configuration
# =============================================================================
from .config import StoryConfig, config

# =============================================================================
# Persistence contract
# =============================================================================
from .store import StoryStore, InMemoryStoryStore

# =============================================================================
# Core Services
# =============================================================================
from .story_service import StoryService
from .story_tool import StoryManagerTool, StoryToolInput
from .processor import MemorySource, StoryProcessor

# =============================================================================
# Public interfaces from private implementation
# =============================================================================
from ._story_impl import (
    TopicGrouper,
    SignificanceScorer,
    SynonymIndex,
)


__all__ = [
    # ===== Data Models =====
    "EntityCategory",
    "PersonItem",
    "PlaceItem",
    "DateItem",
    "EventItem",
    "Relationship",
    "MemoryPayload",
    "MemoryRecord",
    "DateRange",
    "TopicGroup",
    "ToneAnalysis",
    "TitleSummary",
    "PrivacyLevel",
    "ChangeType",
    "Story",
    "StoryVersion",
    "Contradiction",
    "ExtractedEntities",
    "StoryQuery",
    "BriefStory",
    "StorySearchResponse",
    "RetellingStory",
    "RetellingResponse",
    "AppendState",
    "AppendResponse",
    "CreateStoryResponse",
    "StoryStats",
    "ProcessingStatus",
    "UserProcessingState",

    # ===== Configuration =====
    "StoryConfig",
    "config",

    # ===== Persistence =====
    "StoryStore",
    "InMemoryStoryStore",

    # ===== Core Services =====
    "StoryService",
    "StoryManagerTool",
    "StoryToolInput",
    "MemorySource",
    "StoryProcessor",

    # ===== Grouping =====
    "TopicGrouper",
    "SignificanceScorer",
    "SynonymIndex",
]
