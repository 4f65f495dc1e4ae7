"""
Narrative synthesis implementation

@file_name: synthesizer.py
@date: 2026-10-02
@description: Factual content, narrative prose, titles/summaries, weaving and story embeddings

Features:
1. build_content: Deterministic factual content (no external calls)
2. generate_narrative: First-person prose in one of eight tone presets
3. generate_title_and_summaries: Strict-JSON title/summary/brief summary
4. weave: Rewrite an existing narrative to include new information
5. embed_story / embed_text: Embedding vectors for search

Every external call has a fallback, so synthesis always produces a story:
narrative -> factual content, titles -> deterministic fallback,
weave -> concatenation, embedding -> None.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from loguru import logger

from story_keeper.capabilities.protocols import EmbeddingService, TextGenerationService
from story_keeper.settings import settings
from story_keeper.utils.text import parse_json_object, truncate_text

from ..config import config
from ..models import MemoryRecord, TitleSummary
from .entities import build_factual_content
from .fallback import call_with_fallback
from .prompts import (
    JSON_ONLY_STYLE_HINT,
    NARRATIVE_PROMPT,
    STORYTELLER_STYLE_HINT,
    TITLE_SUMMARY_PROMPT,
    WEAVE_PROMPT,
)


def tone_guidance(tone: Optional[str]) -> str:
    """Writing guidance for a tone; unknown tones use the neutral preset"""
    key = (tone or "").strip().lower()
    return config.TONE_PRESETS.get(key, config.TONE_PRESETS["neutral"])


def fallback_title_and_summaries(
    people: Sequence[str],
    places: Sequence[str],
    events: Sequence[str],
) -> TitleSummary:
    """
    Deterministic title and summaries from entity lists

    Example:
        people=["Giuseppe"], places=["Ellis Island"], events=["immigration"]
        -> title "Giuseppe and immigration"
           summary "A story about Giuseppe involving immigration"
           brief "immigration in Ellis Island"
    """
    main_person = people[0] if people else ""
    main_place = places[0] if places else ""
    main_event = events[0] if events else "life events"

    title = f"{main_person} and {main_event}" if main_person else main_event
    summary = f"A story about {', '.join(people)} involving {', '.join(events)}"
    brief = f"{main_event} in {main_place}" if main_place else main_event

    return TitleSummary(
        title=truncate_text(title, config.TITLE_MAX_LENGTH),
        summary=truncate_text(summary, config.SUMMARY_MAX_LENGTH),
        brief_summary=truncate_text(brief, config.BRIEF_SUMMARY_MAX_LENGTH),
    )


def parse_title_summary(text: str) -> TitleSummary:
    """
    Parse a title/summary response, filling missing fields with defaults

    Raises:
        ValueError: The response is not a JSON object
    """
    data = parse_json_object(text)

    def _field(*keys: str) -> str:
        for key in keys:
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return ""

    title = _field("title") or "Untitled Story"
    summary = _field("summary") or "A personal story"
    brief = _field("briefSummary", "brief_summary") or _field("title") or "A memory"

    return TitleSummary(
        title=truncate_text(title, config.TITLE_MAX_LENGTH),
        summary=truncate_text(summary, config.SUMMARY_MAX_LENGTH),
        brief_summary=truncate_text(brief, config.BRIEF_SUMMARY_MAX_LENGTH),
    )


class NarrativeSynthesizer:
    """
    Turns topic groups into story text

    Usage:
        synthesizer = NarrativeSynthesizer(text_generator, embedder)
        content = synthesizer.build_content(group.memories)
        narrative = await synthesizer.generate_narrative(content, tone="nostalgic")
    """

    def __init__(
        self,
        text_generator: Optional[TextGenerationService],
        embedder: Optional[EmbeddingService] = None,
        llm_timeout: Optional[float] = None,
        embedding_timeout: Optional[float] = None,
    ):
        self.text_generator = text_generator
        self.embedder = embedder
        self.llm_timeout = settings.llm_timeout if llm_timeout is None else llm_timeout
        self.embedding_timeout = settings.embedding_timeout if embedding_timeout is None else embedding_timeout

    # ===== Factual content =====

    @staticmethod
    def build_content(memories: Sequence[MemoryRecord]) -> str:
        return build_factual_content(memories)

    # ===== Narrative =====

    async def generate_narrative(self, content: str, tone: Optional[str]) -> str:
        """First-person narrative of the factual content; the content itself on failure"""
        if self.text_generator is None or not content:
            return content

        prompt = NARRATIVE_PROMPT.format(tone_guidance=tone_guidance(tone), content=content)

        async def _request() -> str:
            text = await self.text_generator.generate(
                prompt,
                max_tokens=config.NARRATIVE_MAX_TOKENS,
                style_hint=STORYTELLER_STYLE_HINT,
            )
            if not text or not text.strip():
                raise ValueError("Empty narrative")
            return text.strip()

        return await call_with_fallback(
            "narrative_generation",
            _request,
            fallback=content,
            timeout=self.llm_timeout,
        )

    # ===== Title & summaries =====

    async def generate_title_and_summaries(
        self,
        narrative: str,
        people: Sequence[str],
        places: Sequence[str],
        events: Sequence[str],
    ) -> TitleSummary:
        fallback = fallback_title_and_summaries(people, places, events)
        if self.text_generator is None:
            return fallback

        count = config.TITLE_PROMPT_ENTITY_COUNT
        prompt = TITLE_SUMMARY_PROMPT.format(
            title_max=config.TITLE_MAX_LENGTH,
            summary_max=config.SUMMARY_MAX_LENGTH,
            brief_max=config.BRIEF_SUMMARY_MAX_LENGTH,
            narrative=narrative[:config.TITLE_PROMPT_NARRATIVE_CHARS],
            people=", ".join(people[:count]),
            places=", ".join(places[:count]),
            events=", ".join(events[:count]),
        )

        async def _request() -> TitleSummary:
            response = await self.text_generator.generate(
                prompt,
                max_tokens=config.TITLE_MAX_TOKENS,
                style_hint=JSON_ONLY_STYLE_HINT,
            )
            return parse_title_summary(response)

        return await call_with_fallback(
            "title_generation",
            _request,
            fallback=fallback,
            timeout=self.llm_timeout,
        )

    # ===== Weave =====

    async def weave(self, existing: str, new_information: str, tone: Optional[str]) -> str:
        """
        Rewrite an existing narrative to include new information

        Falls back to appending the new information as a new paragraph.
        """
        fallback = f"{existing}\n\n{new_information}" if existing else new_information
        if self.text_generator is None:
            return fallback

        prompt = WEAVE_PROMPT.format(
            tone=tone or "same",
            existing=existing,
            new_information=new_information,
        )

        async def _request() -> str:
            text = await self.text_generator.generate(
                prompt,
                max_tokens=config.WEAVE_MAX_TOKENS,
                style_hint=STORYTELLER_STYLE_HINT,
            )
            if not text or not text.strip():
                raise ValueError("Empty woven narrative")
            return text.strip()

        return await call_with_fallback(
            "narrative_weave",
            _request,
            fallback=fallback,
            timeout=self.llm_timeout,
        )

    # ===== Embeddings =====

    async def embed_text(self, text: str, operation: str = "embedding") -> Optional[List[float]]:
        """Embedding of text capped at EMBEDDING_MAX_CHARS; None when unavailable"""
        if self.embedder is None or not text or not text.strip():
            return None

        capped = text[:config.EMBEDDING_MAX_CHARS]
        return await call_with_fallback(
            operation,
            lambda: self.embedder.embed(capped),
            fallback=None,
            timeout=self.embedding_timeout,
            service="embedding",
        )

    async def embed_story(self, narrative: str, summary: str) -> Optional[List[float]]:
        return await self.embed_text(f"{narrative} {summary}", operation="story_embedding")
