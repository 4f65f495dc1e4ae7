"""
Repository Package

@file_name: __init__.py
@description: Data access layer over AsyncDatabaseClient

Exports:
- BaseRepository: Generic base with row/entity conversion hooks
- StoryRepository: `stories` table
- StoryVersionRepository: `story_versions` table
"""

from .base import BaseRepository
from .story_repository import StoryRepository
from .story_version_repository import StoryVersionRepository

__all__ = [
    "BaseRepository",
    "StoryRepository",
    "StoryVersionRepository",
]
