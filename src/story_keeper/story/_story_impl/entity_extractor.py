"""
@file_name: entity_extractor.py
@date: 2026-10-02
@description: Re-extract people, places, events and dates from freeform text

Used by the append workflow, once per append: the result feeds both the
contradiction check and the entity merge. Any failure yields empty lists.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from story_keeper.capabilities.protocols import TextGenerationService
from story_keeper.settings import settings
from story_keeper.utils.text import parse_json_object

from ..config import config
from ..models import ExtractedEntities
from .fallback import call_with_fallback
from .prompts import ENTITY_EXTRACTION_PROMPT, JSON_ONLY_STYLE_HINT


class EntityExtractor:
    """Strict-JSON entity extraction via the text generation capability"""

    def __init__(
        self,
        text_generator: Optional[TextGenerationService],
        timeout: Optional[float] = None,
    ):
        self.text_generator = text_generator
        self.timeout = settings.llm_timeout if timeout is None else timeout

    async def extract(self, text: str) -> ExtractedEntities:
        if self.text_generator is None or not text or not text.strip():
            return ExtractedEntities()

        async def _request() -> ExtractedEntities:
            response = await self.text_generator.generate(
                ENTITY_EXTRACTION_PROMPT.format(text=text),
                max_tokens=config.ENTITY_EXTRACTION_MAX_TOKENS,
                style_hint=JSON_ONLY_STYLE_HINT,
            )
            return ExtractedEntities.model_validate(parse_json_object(response))

        entities = await call_with_fallback(
            "entity_extraction",
            _request,
            fallback=ExtractedEntities(),
            timeout=self.timeout,
        )
        logger.debug(
            f"Extracted entities: people={len(entities.people)}, places={len(entities.places)}, "
            f"events={len(entities.events)}, dates={len(entities.dates)}"
        )
        return entities
