"""
@file_name: text_generation.py
@date: 2026-10-02
@description: OpenAI chat-completions implementation of TextGenerationService

The style hint becomes the system message; the prompt is the single user
message. Transient API errors are retried with exponential backoff.

Usage:
    generator = OpenAITextGenerator()
    text = await generator.generate("Write a short story about...", max_tokens=800)
"""

from __future__ import annotations

from typing import Dict, List, Optional

import openai
from loguru import logger
from openai import AsyncOpenAI

from story_keeper.settings import settings
from story_keeper.utils.exceptions import ExternalServiceError
from story_keeper.utils.retry import with_retry


RETRYABLE_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class OpenAITextGenerator:
    """
    Text generation via AsyncOpenAI chat completions

    Attributes:
        model: Chat model name
        temperature: Sampling temperature for every request
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model or settings.openai_model
        self.temperature = temperature
        self._client = client or AsyncOpenAI(
            api_key=api_key or settings.openai_api_key or None,
            base_url=settings.openai_base_url,
        )
        logger.debug(f"OpenAITextGenerator initialized with model: {self.model}")

    @staticmethod
    def _build_messages(prompt: str, style_hint: Optional[str]) -> List[Dict[str, str]]:
        messages: List[Dict[str, str]] = []
        if style_hint:
            messages.append({"role": "system", "content": style_hint})
        messages.append({"role": "user", "content": prompt})
        return messages

    @with_retry(max_attempts=3, delay=1.0, backoff=2.0, exceptions=RETRYABLE_ERRORS)
    async def _request(self, messages: List[Dict[str, str]], max_tokens: int):
        return await self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=self.temperature,
        )

    async def generate(
        self,
        prompt: str,
        max_tokens: int,
        style_hint: Optional[str] = None,
    ) -> str:
        """
        Generate text for a prompt

        Raises:
            ExternalServiceError: The API failed after retries or returned no text
        """
        try:
            response = await self._request(self._build_messages(prompt, style_hint), max_tokens)
        except openai.OpenAIError as e:
            raise ExternalServiceError(
                "Chat completion request failed",
                service="text_generation",
                cause=e,
                model=self.model,
            ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ExternalServiceError(
                "Chat completion returned no content",
                service="text_generation",
                model=self.model,
            )
        return content.strip()
