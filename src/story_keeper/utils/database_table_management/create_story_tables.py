#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Create story tables

Tables:
- stories: one row per story; list fields are JSON columns
- story_versions: append-only pre-mutation snapshots, unique per (story_id, version_number)

Usage:
    python -m story_keeper.utils.database_table_management.create_story_tables
    python -m story_keeper.utils.database_table_management.create_story_tables --force
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Tuple

from loguru import logger

from story_keeper.settings import settings
from story_keeper.utils.db_factory import close_db_client, get_db_client


STORIES_TABLE = "stories"
STORY_VERSIONS_TABLE = "story_versions"

STORIES_DDL = f"""
CREATE TABLE IF NOT EXISTS `{STORIES_TABLE}` (
    `id` BIGINT AUTO_INCREMENT PRIMARY KEY,
    `story_id` VARCHAR(64) NOT NULL,
    `user_id` VARCHAR(128) NOT NULL,
    `title` VARCHAR(255) NOT NULL,
    `content` MEDIUMTEXT NOT NULL,
    `narrative` MEDIUMTEXT,
    `summary` TEXT,
    `brief_summary` VARCHAR(255),
    `embedding` MEDIUMTEXT NULL,
    `people` JSON,
    `places` JSON,
    `dates` JSON,
    `events` JSON,
    `relationships` JSON,
    `emotional_tags` JSON,
    `tone` VARCHAR(32) NOT NULL DEFAULT 'neutral',
    `significance_rating` TINYINT NOT NULL DEFAULT 3,
    `privacy_level` VARCHAR(16) NOT NULL DEFAULT 'private',
    `version` INT NOT NULL DEFAULT 1,
    `is_complete` BOOLEAN NOT NULL DEFAULT FALSE,
    `source_memory_ids` JSON,
    `conversation_ids` JSON,
    `access_count` INT NOT NULL DEFAULT 0,
    `last_accessed_at` DATETIME(6) NULL,
    `created_at` DATETIME(6) NOT NULL,
    `updated_at` DATETIME(6) NOT NULL,
    UNIQUE KEY `uk_story_id` (`story_id`),
    KEY `idx_user_id` (`user_id`),
    KEY `idx_user_updated` (`user_id`, `updated_at`),
    CONSTRAINT `chk_significance` CHECK (`significance_rating` BETWEEN 1 AND 5),
    CONSTRAINT `chk_version` CHECK (`version` >= 1)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
"""

STORY_VERSIONS_DDL = f"""
CREATE TABLE IF NOT EXISTS `{STORY_VERSIONS_TABLE}` (
    `id` BIGINT AUTO_INCREMENT PRIMARY KEY,
    `story_id` VARCHAR(64) NOT NULL,
    `version_number` INT NOT NULL,
    `content` MEDIUMTEXT NOT NULL,
    `narrative` MEDIUMTEXT,
    `change_type` VARCHAR(16) NOT NULL DEFAULT 'append',
    `change_summary` TEXT,
    `created_at` DATETIME(6) NOT NULL,
    UNIQUE KEY `uk_story_version` (`story_id`, `version_number`),
    KEY `idx_story_id` (`story_id`)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
"""

# (table name, DDL) in creation order
TABLES: List[Tuple[str, str]] = [
    (STORIES_TABLE, STORIES_DDL),
    (STORY_VERSIONS_TABLE, STORY_VERSIONS_DDL),
]


async def create_story_tables(force: bool = False) -> List[str]:
    """
    Create the story tables

    Args:
        force: Drop existing tables first (destroys data)

    Returns:
        Names of the tables that were created
    """
    db = await get_db_client()
    created: List[str] = []

    if force:
        for table_name, _ in reversed(TABLES):
            if await db.table_exists(table_name):
                logger.warning(f"Dropping table {table_name}")
                await db.drop_table(table_name)

    for table_name, ddl in TABLES:
        if await db.table_exists(table_name):
            logger.info(f"Table {table_name} already exists, skipping")
            continue
        await db.create_table(ddl)
        created.append(table_name)
        logger.success(f"Created table {table_name}")

    return created


# ===== CLI =====

async def main():
    parser = argparse.ArgumentParser(description="Create story tables")
    parser.add_argument("--force", "-f", action="store_true", help="Force drop existing tables and recreate")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level (default from settings)")

    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    logger.info("=" * 60)
    logger.info("Story Tables Creation Tool")
    logger.info("=" * 60)

    try:
        created = await create_story_tables(force=args.force)
        logger.info(f"Done: {len(created)} table(s) created")
    finally:
        await close_db_client()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.warning("Operation interrupted by user")
        sys.exit(1)
