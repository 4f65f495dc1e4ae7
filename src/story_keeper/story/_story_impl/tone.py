"""
Tone analysis

@file_name: tone.py
@date: 2026-10-02
@description: Classify the tone and emotional tags of a topic group

Contract: the text generator answers with strict JSON
    {"tone": "nostalgic", "emotionalTags": ["love", "loss"]}
Anything else (error, timeout, malformed JSON) yields neutral with no tags.
"""

from __future__ import annotations

import json
from typing import Optional, Sequence

from loguru import logger

from story_keeper.capabilities.protocols import TextGenerationService
from story_keeper.settings import settings
from story_keeper.utils.text import parse_json_object

from ..config import config
from ..models import MemoryRecord, ToneAnalysis
from .fallback import call_with_fallback
from .prompts import JSON_ONLY_STYLE_HINT, TONE_ANALYSIS_PROMPT


def memory_facts_text(memories: Sequence[MemoryRecord]) -> str:
    """One JSON-encoded payload per line, the input of tone analysis"""
    return "\n".join(
        json.dumps(m.payload.model_dump(mode="json", by_alias=True, exclude_none=True), ensure_ascii=False)
        for m in memories
    )


def parse_tone(text: str) -> ToneAnalysis:
    """
    Parse a tone analysis response

    Raises:
        ValueError: The response is not a JSON object
    """
    data = parse_json_object(text)

    tone = data.get("tone")
    tone = str(tone).strip().lower() if tone else config.DEFAULT_TONE

    raw_tags = data.get("emotionalTags", data.get("emotional_tags", []))
    if not isinstance(raw_tags, list):
        raw_tags = []
    tags = [str(t).strip().lower() for t in raw_tags if str(t).strip()]

    return ToneAnalysis(
        tone=tone or config.DEFAULT_TONE,
        emotional_tags=tags[:config.MAX_EMOTIONAL_TAGS],
    )


class ToneAnalyzer:
    """Tone and emotional tags via the text generation capability"""

    def __init__(
        self,
        text_generator: Optional[TextGenerationService],
        timeout: Optional[float] = None,
    ):
        self.text_generator = text_generator
        self.timeout = settings.llm_timeout if timeout is None else timeout

    async def analyze(self, facts_text: str) -> ToneAnalysis:
        if self.text_generator is None or not facts_text.strip():
            return ToneAnalysis()

        async def _request() -> ToneAnalysis:
            response = await self.text_generator.generate(
                TONE_ANALYSIS_PROMPT.format(memory_texts=facts_text),
                max_tokens=config.TONE_MAX_TOKENS,
                style_hint=JSON_ONLY_STYLE_HINT,
            )
            return parse_tone(response)

        analysis = await call_with_fallback(
            "tone_analysis",
            _request,
            fallback=ToneAnalysis(),
            timeout=self.timeout,
        )
        logger.debug(f"Tone analysis: tone={analysis.tone}, tags={analysis.emotional_tags}")
        return analysis
