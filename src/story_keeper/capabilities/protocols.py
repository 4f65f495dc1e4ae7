"""
@file_name: protocols.py
@date: 2026-10-02
@description: Contracts of the external capabilities the story engine depends on

Both capabilities are injected into StoryService. Implementations may raise
any exception; the engine wraps every call with a timeout and a fallback.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class TextGenerationService(Protocol):
    """Free-text generation (narratives, weaving) and strict-JSON answers (tone, titles, entities)"""

    async def generate(
        self,
        prompt: str,
        max_tokens: int,
        style_hint: Optional[str] = None,
    ) -> str:
        ...


@runtime_checkable
class EmbeddingService(Protocol):
    """Fixed-length vector for a text"""

    async def embed(self, text: str) -> List[float]:
        ...
