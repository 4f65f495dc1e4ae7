"""
Story Keeper exceptions

@file_name: exceptions.py
@date: 2026-10-02
@description: Define custom exception types for story_keeper

=============================================================================
Exception hierarchy
=============================================================================

    StoryKeeperError (base class)
    ├── ExternalServiceError     text generation / embedding failures
    ├── PersistenceError         story store read/write failures
    │   └── VersionConflictError optimistic version check failed
    └── StoryValidationError     missing identifiers or content

ExternalServiceError never reaches the caller of a public operation: it is
caught where the capability is invoked and resolved through a fallback.
PersistenceError is converted into a {success: False, message} response at the
StoryService boundary. StoryValidationError is raised to the caller.

Usage example:
    try:
        await store.save_story(story)
    except aiomysql.Error as e:
        raise PersistenceError(
            "Failed to save story",
            cause=e,
            story_id=story.id,
        ) from e

=============================================================================
"""

from __future__ import annotations

from typing import Any, Dict, Optional


# =============================================================================
# Base Exceptions
# =============================================================================

class StoryKeeperError(Exception):
    """
    Base exception class for story_keeper

    Attributes:
        message: Error message
        cause: Original exception (if any)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        self.message = message
        self.cause = cause
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """message [key=value, ...] Caused by: Type: cause"""
        parts = [self.message]

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"[{context_str}]")

        if self.cause:
            parts.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Flat dict for structured log records"""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "cause_type": type(self.cause).__name__ if self.cause else None,
            **self.context,
        }


# =============================================================================
# Capability Exceptions
# =============================================================================

class ExternalServiceError(StoryKeeperError):
    """
    A text generation or embedding capability was unreachable, errored,
    timed out, or returned malformed output

    Example:
        raise ExternalServiceError(
            "Tone analysis returned malformed JSON",
            service="text_generation",
            operation="tone_analysis",
        )
    """

    def __init__(
        self,
        message: str,
        service: str,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        self.service = service
        super().__init__(message, cause, service=service, **context)


# =============================================================================
# Persistence Exceptions
# =============================================================================

class PersistenceError(StoryKeeperError):
    """Story store read/write failure"""
    pass


class VersionConflictError(PersistenceError):
    """
    Optimistic concurrency check failed on story update

    Raised when the stored version no longer matches the version the caller read.
    """

    def __init__(
        self,
        story_id: str,
        expected_version: int,
        actual_version: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        self.story_id = story_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            "Story version changed during update",
            cause,
            story_id=story_id,
            expected_version=expected_version,
            actual_version=actual_version,
        )


# =============================================================================
# Validation Exceptions
# =============================================================================

class StoryValidationError(StoryKeeperError):
    """Missing identifiers or content for a story operation"""
    pass
