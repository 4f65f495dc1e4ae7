"""
Database Factory - Shared database client

@file_name: db_factory.py
@date: 2026-10-02
@description: Provides one AsyncDatabaseClient per event loop

Usage examples:
    db = await get_db_client()
    store = DatabaseStoryStore(db)
    ...
    await close_db_client()
"""

from __future__ import annotations

import asyncio
from typing import Optional, TYPE_CHECKING
from loguru import logger

if TYPE_CHECKING:
    from story_keeper.utils.database import AsyncDatabaseClient


_shared_async_client: Optional["AsyncDatabaseClient"] = None
_client_event_loop: Optional[asyncio.AbstractEventLoop] = None
_initialization_lock: Optional[asyncio.Lock] = None


def _needs_recreate(current_loop: asyncio.AbstractEventLoop) -> bool:
    return (
        _shared_async_client is None or
        _client_event_loop is None or
        _client_event_loop is not current_loop or
        _client_event_loop.is_closed()
    )


async def get_db_client() -> "AsyncDatabaseClient":
    """
    Get the shared async database client

    Created lazily on first call and recreated when the running event loop changes.
    """
    global _shared_async_client, _client_event_loop, _initialization_lock

    current_loop = asyncio.get_running_loop()
    if not _needs_recreate(current_loop):
        return _shared_async_client

    if _initialization_lock is None or _client_event_loop is not current_loop:
        _initialization_lock = asyncio.Lock()

    async with _initialization_lock:
        if _needs_recreate(current_loop):
            if _shared_async_client is not None:
                # The old pool belongs to another loop and cannot be closed from here
                logger.warning("Event loop changed, recreating AsyncDatabaseClient")

            from story_keeper.utils.database import AsyncDatabaseClient
            logger.info("Creating shared AsyncDatabaseClient instance")
            _shared_async_client = AsyncDatabaseClient()
            _client_event_loop = current_loop

    return _shared_async_client


async def close_db_client() -> None:
    """Close the shared database client, typically on application shutdown"""
    global _shared_async_client, _client_event_loop

    if _shared_async_client is not None:
        logger.info("Closing shared AsyncDatabaseClient")
        await _shared_async_client.close()
        _shared_async_client = None
        _client_event_loop = None
