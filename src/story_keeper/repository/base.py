"""
@file_name: base.py
@date: 2026-10-02
@description: Repository base class

Responsibilities:
- Define a unified data access interface over AsyncDatabaseClient
- Encapsulate conversion between database rows and entity objects
- Parse JSON columns consistently

Subclasses set table_name and implement _row_to_entity() and
_entity_to_row().
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar, TYPE_CHECKING
from loguru import logger

if TYPE_CHECKING:
    from story_keeper.utils.database import AsyncDatabaseClient

T = TypeVar('T')


class BaseRepository(ABC, Generic[T]):
    """
    Repository base class

    Usage example:
        class StoryRepository(BaseRepository[Story]):
            table_name = "stories"

        repo = StoryRepository(db_client)
        story = await repo.find_one({"story_id": "story_123"})
    """

    table_name: str = ""

    def __init__(self, db_client: "AsyncDatabaseClient"):
        if not self.table_name:
            raise ValueError(f"{self.__class__.__name__} must define 'table_name'")
        self._db = db_client

    async def insert(self, entity: T) -> int:
        row = self._entity_to_row(entity)
        logger.debug(f"    → {self.__class__.__name__}.insert")
        return await self._db.insert(self.table_name, row)

    async def update_where(self, filters: Dict[str, Any], data: Dict[str, Any]) -> int:
        """Partial update of rows matching filters, returns affected row count"""
        logger.debug(f"    → {self.__class__.__name__}.update_where({filters})")
        return await self._db.update(self.table_name, filters=filters, data=data)

    async def delete_where(self, filters: Dict[str, Any]) -> int:
        logger.debug(f"    → {self.__class__.__name__}.delete_where({filters})")
        return await self._db.delete(self.table_name, filters)

    async def find(
        self,
        filters: Dict[str, Any],
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order_by: Optional[str] = None
    ) -> List[T]:
        logger.debug(f"    → {self.__class__.__name__}.find(filters={filters})")
        rows = await self._db.get(
            self.table_name,
            filters=filters,
            limit=limit,
            offset=offset,
            order_by=order_by
        )
        return [self._row_to_entity(row) for row in rows if row]

    async def find_one(self, filters: Dict[str, Any]) -> Optional[T]:
        results = await self.find(filters, limit=1)
        return results[0] if results else None

    @staticmethod
    def _parse_json_field(value: Any, default: Any) -> Any:
        """Decode a JSON column that may come back as str, bytes or an already decoded value"""
        if value is None or value == "":
            return default
        if isinstance(value, (bytes, bytearray)):
            value = value.decode("utf-8")
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                logger.warning(f"Unreadable JSON column value: {value[:80]!r}")
                return default
        return value

    @staticmethod
    def _to_json(value: Any) -> Optional[str]:
        if value is None:
            return None
        return json.dumps(value, ensure_ascii=False)

    @abstractmethod
    def _row_to_entity(self, row: Dict[str, Any]) -> T:
        """Convert a database row to an entity object"""

    @abstractmethod
    def _entity_to_row(self, entity: T) -> Dict[str, Any]:
        """Convert an entity object to a database row"""
