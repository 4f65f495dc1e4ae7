"""
@file_name: story_version_repository.py
@date: 2026-10-02
@description: Story version history repository (`story_versions` table, append-only)
"""

from __future__ import annotations

from typing import Any, Dict, List

from .base import BaseRepository
from story_keeper.story.models import ChangeType, StoryVersion
from story_keeper.utils.timezone import ensure_utc, to_db_datetime, utc_now


class StoryVersionRepository(BaseRepository[StoryVersion]):
    """
    Usage example:
        repo = StoryVersionRepository(db_client)
        await repo.insert(version)
        history = await repo.list_for_story("story_123")
    """

    table_name = "story_versions"

    async def list_for_story(self, story_id: str) -> List[StoryVersion]:
        return await self.find({"story_id": story_id}, order_by="version_number ASC")

    async def delete_for_story(self, story_id: str) -> int:
        return await self.delete_where({"story_id": story_id})

    def _row_to_entity(self, row: Dict[str, Any]) -> StoryVersion:
        return StoryVersion(
            id=row.get("id"),
            story_id=row["story_id"],
            version_number=row["version_number"],
            content=row.get("content") or "",
            narrative=row.get("narrative") or "",
            change_type=ChangeType(row.get("change_type") or "append"),
            change_summary=row.get("change_summary") or "",
            created_at=ensure_utc(row.get("created_at")) or utc_now(),
        )

    def _entity_to_row(self, entity: StoryVersion) -> Dict[str, Any]:
        return {
            "story_id": entity.story_id,
            "version_number": entity.version_number,
            "content": entity.content,
            "narrative": entity.narrative,
            "change_type": entity.change_type.value,
            "change_summary": entity.change_summary,
            "created_at": to_db_datetime(entity.created_at),
        }
