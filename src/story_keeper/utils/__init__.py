"""
Utils Package

@file_name: __init__.py
@description: Utility modules for story_keeper

Exports:
- AsyncDatabaseClient: MySQL database operations (async driver, using aiomysql)
- EmbeddingClient: Text embedding generation (OpenAI)
- Exceptions: StoryKeeperError hierarchy
- Convenience functions: load_db_config, with_retry, text helpers, timezone helpers
"""

from story_keeper.utils.database import (
    AsyncDatabaseClient,
    load_db_config,
)

# Embedding utilities
from story_keeper.utils.embedding import (
    EmbeddingClient,
    cosine_similarity,
)

# Text utilities
from story_keeper.utils.text import (
    extract_keywords,
    truncate_text,
    parse_json_object,
)

# Retry utilities
from story_keeper.utils.retry import (
    with_retry,
    DEFAULT_RETRYABLE_EXCEPTIONS,
)

# Database factory (global singleton)
from story_keeper.utils.db_factory import (
    get_db_client,
    close_db_client,
)

# Timezone utilities
from story_keeper.utils.timezone import (
    utc_now,
    ensure_utc,
)

# Concurrency
from story_keeper.utils.locks import KeyedLock

# Exceptions
from story_keeper.utils.exceptions import (
    StoryKeeperError,
    ExternalServiceError,
    PersistenceError,
    VersionConflictError,
    StoryValidationError,
)

__all__ = [
    # Database
    "AsyncDatabaseClient",
    "load_db_config",
    "get_db_client",
    "close_db_client",
    # Embedding
    "EmbeddingClient",
    "cosine_similarity",
    # Text
    "extract_keywords",
    "truncate_text",
    "parse_json_object",
    # Retry
    "with_retry",
    "DEFAULT_RETRYABLE_EXCEPTIONS",
    # Timezone
    "utc_now",
    "ensure_utc",
    # Concurrency
    "KeyedLock",
    # Exceptions
    "StoryKeeperError",
    "ExternalServiceError",
    "PersistenceError",
    "VersionConflictError",
    "StoryValidationError",
]
