#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Embedding Utilities

@file_name: embedding.py
@date: 2026-10-02
@description: Text embedding generation and vector math for story search

EmbeddingClient is the default EmbeddingService implementation. Story
synthesis embeds "narrative + summary", direct creation embeds
"content + title", and search embeds the query text; stores compare vectors
with cosine_similarity().

Usage:
    from story_keeper.utils.embedding import EmbeddingClient, cosine_similarity

    client = EmbeddingClient()
    vector = await client.embed("Arriving at Ellis Island")

Environment Variables:
    OPENAI_API_KEY: required unless an AsyncOpenAI client is injected
    OPENAI_EMBEDDING_MODEL: embedding model, text-embedding-3-small by default
"""

from __future__ import annotations

import hashlib
from typing import Dict, List, Optional

import numpy as np
import openai
from loguru import logger
from openai import AsyncOpenAI

from story_keeper.settings import settings
from story_keeper.utils.retry import with_retry


# =============================================================================
# Constants
# =============================================================================

# Embedding dimensions by model
MODEL_DIMENSIONS: Dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

# Maximum characters sent per embedding request
MAX_INPUT_CHARS = 8000

# Cache size limit
CACHE_SIZE = 1000

RETRYABLE_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    ConnectionError,
    TimeoutError,
)


# =============================================================================
# Embedding Client
# =============================================================================

class EmbeddingClient:
    """
    OpenAI embedding client with an in-memory cache

    Attributes:
        model: The embedding model to use
        dimensions: The embedding vector dimensions
        enable_cache: Whether to cache embeddings
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        enable_cache: bool = True,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model or settings.openai_embedding_model
        self.dimensions = MODEL_DIMENSIONS.get(self.model, 1536)
        self.enable_cache = enable_cache

        self._client = client or AsyncOpenAI(
            api_key=api_key or settings.openai_api_key or None,
            base_url=settings.openai_base_url,
        )

        # hash(model:text) -> embedding
        self._cache: Dict[str, List[float]] = {}

        logger.debug(f"EmbeddingClient ready (model={self.model}, cache={enable_cache})")

    def _cache_key(self, text: str) -> str:
        return hashlib.md5(f"{self.model}:{text}".encode()).hexdigest()

    @with_retry(max_attempts=3, delay=1.0, backoff=2.0, exceptions=RETRYABLE_ERRORS)
    async def _request(self, text: str) -> List[float]:
        response = await self._client.embeddings.create(
            model=self.model,
            input=text,
        )
        return response.data[0].embedding

    async def embed(self, text: str) -> List[float]:
        """
        Generate embedding for a single text

        Input longer than MAX_INPUT_CHARS is cut before the request. Errors are
        logged and re-raised; callers decide on the fallback.
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        text = text[:MAX_INPUT_CHARS]
        cache_key = self._cache_key(text)

        if self.enable_cache and cache_key in self._cache:
            logger.debug(f"Embedding cache hit for text: {text[:50]}...")
            return self._cache[cache_key]

        try:
            embedding = await self._request(text)
        except Exception as e:
            logger.error(f"Embedding request failed ({self.model}): {e}")
            raise

        if self.enable_cache:
            if len(self._cache) >= CACHE_SIZE:
                # Evict the oldest half
                for key in list(self._cache.keys())[:CACHE_SIZE // 2]:
                    del self._cache[key]
            self._cache[cache_key] = embedding

        return embedding

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.debug("Embedding cache cleared")

    @property
    def cache_size(self) -> int:
        return len(self._cache)


# =============================================================================
# Vector Calculation Utilities
# =============================================================================

def cosine_similarity(vec1: Optional[List[float]], vec2: Optional[List[float]]) -> float:
    """
    Cosine similarity between two vectors

    Returns 0.0 for missing, mismatched or zero-length vectors.

    Example:
        similarity = cosine_similarity(story.embedding, query_embedding)
    """
    if not vec1 or not vec2 or len(vec1) != len(vec2):
        return 0.0

    v1 = np.asarray(vec1, dtype=float)
    v2 = np.asarray(vec2, dtype=float)
    norm1 = np.linalg.norm(v1)
    norm2 = np.linalg.norm(v2)
    if norm1 == 0 or norm2 == 0:
        return 0.0
    return float(np.dot(v1, v2) / (norm1 * norm2))
