"""
Database Table Management Module

Table creation scripts for the story engine:
- create_story_tables.py - DDL for `stories` and `story_versions` and a CLI to create them

Notes:
- This module is a standalone collection of table management scripts
- CRUD operations should use repository classes in story_keeper.repository
"""

# Do not export anything; this module is a standalone script collection
__all__ = []
