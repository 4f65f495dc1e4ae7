"""
Contradiction detection

@file_name: contradiction.py
@date: 2026-10-02
@description: Date conflicts between an existing story and new information

Two date strings conflict when:
- both contain a 19xx/20xx year,
- their first years differ,
- they share at least one lowercase whitespace-delimited word longer than 3 characters
  (so they are talking about the same thing).

"arrived at Ellis Island 1955" vs "arrived at Ellis Island 1956" conflict;
"1955" vs "1956" alone do not (no shared word); different events in different
years do not.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from loguru import logger

from story_keeper.utils.text import find_year, shared_words

from ..models import Contradiction, ExtractedEntities, Story
from .entity_extractor import EntityExtractor


CLARIFICATION_TEMPLATE = (
    "I noticed some details that might need clarification:\n{messages}\n\n"
    "Could you help me understand which is correct?"
)


def dates_conflict(existing: str, new: str) -> bool:
    year_existing = find_year(existing)
    year_new = find_year(new)
    if not year_existing or not year_new or year_existing == year_new:
        return False
    return bool(shared_words(existing, new, min_length=4))


def find_date_conflicts(existing_dates: Sequence[str], new_dates: Sequence[str]) -> List[Contradiction]:
    conflicts: List[Contradiction] = []
    for new_date in new_dates:
        for existing_date in existing_dates:
            if dates_conflict(existing_date, new_date):
                conflicts.append(Contradiction(
                    type="date",
                    original=existing_date,
                    new=new_date,
                    message=f"The story mentions {existing_date}, but you just said {new_date}",
                ))
    return conflicts


def format_clarification(contradictions: Sequence[Contradiction]) -> str:
    """User-facing message asking which of the conflicting details is correct"""
    return CLARIFICATION_TEMPLATE.format(messages="\n".join(c.message for c in contradictions))


class ContradictionDetector:
    """Checks new information against a story's dates"""

    def __init__(self, extractor: EntityExtractor):
        self.extractor = extractor

    async def detect(
        self,
        story: Story,
        new_information: str,
        entities: Optional[ExtractedEntities] = None,
    ) -> List[Contradiction]:
        """
        Date contradictions between the story and new information

        Args:
            story: Story being extended
            new_information: Text supplied by the user
            entities: Entities already extracted from new_information; extracted here when None
        """
        if entities is None:
            entities = await self.extractor.extract(new_information)

        contradictions = find_date_conflicts(story.dates, entities.dates)
        if contradictions:
            logger.info(f"Found {len(contradictions)} date contradiction(s) for story {story.id}")
        return contradictions
