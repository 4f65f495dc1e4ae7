"""
@file_name: story_repository.py
@date: 2026-10-02
@description: Story Repository

Responsibilities:
- Persistence of Story entities in the `stories` table
- Serialization/deserialization of JSON list columns
- Per-user queries: listing, lexical candidates, semantic search, access stats
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from .base import BaseRepository
from story_keeper.story.models import PrivacyLevel, Relationship, Story
from story_keeper.utils.database import validate_identifier
from story_keeper.utils.timezone import ensure_utc, to_db_datetime, utc_now


JSON_LIST_FIELDS = (
    "people", "places", "dates", "events", "emotional_tags",
    "source_memory_ids", "conversation_ids",
)

# Columns scanned by lexical search
LEXICAL_COLUMNS = ("title", "brief_summary", "summary", "content", "narrative")


class StoryRepository(BaseRepository[Story]):
    """
    Story Repository implementation

    Usage example:
        repo = StoryRepository(db_client)
        story = await repo.find_one({"story_id": "story_123"})
        stories = await repo.list_for_user("user_1", limit=10)
    """

    table_name = "stories"

    async def get_for_user(self, story_id: str, user_id: str) -> Optional[Story]:
        return await self.find_one({"story_id": story_id, "user_id": user_id})

    async def list_for_user(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Story]:
        return await self.find(
            {"user_id": user_id},
            limit=limit,
            offset=offset,
            order_by="updated_at DESC",
        )

    async def all_for_user(self, user_id: str) -> List[Story]:
        return await self.find({"user_id": user_id}, order_by="created_at ASC")

    async def update_fields(
        self,
        story_id: str,
        user_id: str,
        updates: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> int:
        """
        Update story columns, optionally guarded by the current version

        Returns:
            Number of rows updated (0 when the story is missing or the version changed)
        """
        filters: Dict[str, Any] = {"story_id": story_id, "user_id": user_id}
        if expected_version is not None:
            filters["version"] = expected_version

        data = self._fields_to_columns(updates)
        data["updated_at"] = to_db_datetime(utc_now())
        return await self.update_where(filters, data)

    async def increment_access(self, story_id: str, user_id: str) -> int:
        query = (
            f"UPDATE `{self.table_name}` "
            "SET access_count = COALESCE(access_count, 0) + 1, last_accessed_at = %s "
            "WHERE story_id = %s AND user_id = %s"
        )
        return await self._db.execute(
            query,
            (to_db_datetime(utc_now()), story_id, user_id),
            fetch=False,
        )

    async def lexical_candidates(self, user_id: str, keywords: List[str], limit: int = 50) -> List[Story]:
        """Stories of the user containing any keyword in a text column (LIKE match)"""
        if not keywords:
            return []

        clauses = []
        params: List[Any] = [user_id]
        for keyword in keywords:
            column_clauses = []
            for column in LEXICAL_COLUMNS:
                column_clauses.append(f"`{validate_identifier(column)}` LIKE %s")
                params.append(f"%{keyword}%")
            clauses.append("(" + " OR ".join(column_clauses) + ")")

        query = (
            f"SELECT * FROM `{self.table_name}` WHERE user_id = %s AND ("
            + " OR ".join(clauses)
            + f") ORDER BY updated_at DESC LIMIT {int(limit)}"
        )
        rows = await self._db.execute(query, tuple(params), fetch=True)
        return [self._row_to_entity(row) for row in rows]

    async def semantic_candidates(
        self,
        user_id: str,
        embedding: List[float],
        limit: int,
        min_similarity: float,
    ) -> List[Tuple[Story, float]]:
        results = await self._db.semantic_search(
            self.table_name,
            "embedding",
            embedding,
            filters={"user_id": user_id},
            limit=limit,
            min_similarity=min_similarity,
        )
        logger.debug(f"    ← StoryRepository.semantic_candidates: {len(results)} found")
        return [(self._row_to_entity(row), score) for row, score in results]

    async def memory_ids_for_user(self, user_id: str) -> List[str]:
        rows = await self._db.execute(
            f"SELECT source_memory_ids FROM `{self.table_name}` WHERE user_id = %s",
            (user_id,),
            fetch=True,
        )
        ids: List[str] = []
        for row in rows:
            ids.extend(self._parse_json_field(row.get("source_memory_ids"), []))
        return ids

    # ===== Row conversion =====

    def _fields_to_columns(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        columns: Dict[str, Any] = {}
        for key, value in fields.items():
            if key in JSON_LIST_FIELDS:
                columns[key] = self._to_json(list(value or []))
            elif key == "relationships":
                columns[key] = self._to_json([
                    (r if isinstance(r, Relationship) else Relationship.model_validate(r)).model_dump(by_alias=True)
                    for r in value or []
                ])
            elif key == "embedding":
                columns[key] = self._to_json(value)
            elif key == "privacy_level":
                columns[key] = value.value if isinstance(value, PrivacyLevel) else value
            elif key == "is_complete":
                columns[key] = int(bool(value))
            elif key in ("created_at", "updated_at", "last_accessed_at"):
                columns[key] = to_db_datetime(value)
            else:
                columns[key] = value
        return columns

    def _row_to_entity(self, row: Dict[str, Any]) -> Story:
        return Story(
            id=row["story_id"],
            user_id=row["user_id"],
            title=row.get("title") or "",
            content=row.get("content") or "",
            narrative=row.get("narrative") or "",
            summary=row.get("summary") or "",
            brief_summary=row.get("brief_summary") or "",
            embedding=self._parse_json_field(row.get("embedding"), None),
            people=self._parse_json_field(row.get("people"), []),
            places=self._parse_json_field(row.get("places"), []),
            dates=self._parse_json_field(row.get("dates"), []),
            events=self._parse_json_field(row.get("events"), []),
            relationships=self._parse_json_field(row.get("relationships"), []),
            emotional_tags=self._parse_json_field(row.get("emotional_tags"), []),
            tone=row.get("tone") or "neutral",
            significance_rating=row.get("significance_rating") or 3,
            privacy_level=PrivacyLevel(row.get("privacy_level") or "private"),
            version=row.get("version") or 1,
            is_complete=bool(row.get("is_complete")),
            source_memory_ids=self._parse_json_field(row.get("source_memory_ids"), []),
            conversation_ids=self._parse_json_field(row.get("conversation_ids"), []),
            access_count=row.get("access_count") or 0,
            last_accessed_at=ensure_utc(row.get("last_accessed_at")),
            created_at=ensure_utc(row.get("created_at")) or utc_now(),
            updated_at=ensure_utc(row.get("updated_at")) or utc_now(),
        )

    def _entity_to_row(self, entity: Story) -> Dict[str, Any]:
        fields = entity.model_dump(exclude={"id"})
        fields["relationships"] = entity.relationships
        fields["privacy_level"] = entity.privacy_level
        row = self._fields_to_columns(fields)
        row["story_id"] = entity.id
        return row
