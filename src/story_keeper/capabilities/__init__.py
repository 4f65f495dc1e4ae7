"""
Capabilities Package

@file_name: __init__.py
@description: External capability contracts and their OpenAI-backed implementations

Exports:
- TextGenerationService / EmbeddingService: Protocols the story engine depends on
- OpenAITextGenerator: Chat completions implementation of TextGenerationService
- EmbeddingClient: OpenAI embeddings implementation of EmbeddingService
"""

from story_keeper.capabilities.protocols import EmbeddingService, TextGenerationService
from story_keeper.capabilities.text_generation import OpenAITextGenerator
from story_keeper.utils.embedding import EmbeddingClient

__all__ = [
    "TextGenerationService",
    "EmbeddingService",
    "OpenAITextGenerator",
    "EmbeddingClient",
]
