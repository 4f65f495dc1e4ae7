"""
@file_name: config.py
@date: 2026-10-02
@description: Tunable parameters for story aggregation, synthesis and search

All tunable parameters are centralized in this file. Connection settings and
secrets live in story_keeper.settings instead.
"""

from typing import Dict, List, Tuple


class StoryConfig:
    """Global configuration for the story engine"""

    # ==================== Topic Grouping ====================

    # Weights of the Jaccard overlaps in the topic similarity score
    # people + places + events = 1.0
    PEOPLE_WEIGHT = 0.4
    PLACES_WEIGHT = 0.3
    EVENTS_WEIGHT = 0.3

    # Bonus added when a person (or event) term of the group and of the
    # candidate share a synonym key; the score is clamped to 1.0 afterwards
    SYNONYM_BONUS = 0.2

    # A candidate joins the group when its score is strictly above this value
    # Recommended: 0.3
    #   - Lower values merge loosely related conversations
    #   - Higher values split one life event across several stories
    GROUPING_THRESHOLD = 0.3

    # Canonical term -> synonyms
    # Matching is by whole normalized term, word or two-word phrase, never by substring
    SYNONYMS: Dict[str, List[str]] = {
        "father": ["dad", "father", "papa", "pop", "daddy"],
        "mother": ["mom", "mother", "mama", "mum", "mommy"],
        "grandfather": ["grandpa", "grandfather", "granddad", "nonno"],
        "grandmother": ["grandma", "grandmother", "granny", "nonna"],
        "death": ["passed away", "died", "passing", "funeral", "death", "dying"],
        "hospital": ["hospital", "clinic", "medical", "mount sinai"],
        "immigration": ["immigrated", "emigrated", "immigrant", "immigration", "emigration"],
        "wedding": ["wedding", "married", "marriage"],
    }

    # ==================== Significance ====================

    # A topic group becomes a story if it has at least this many memories...
    MIN_MEMORIES_PER_STORY = 3

    # ...or if any memory's events text contains one of these keywords
    SIGNIFICANT_EVENT_KEYWORDS: Tuple[str, ...] = (
        "death", "birth", "wedding", "marriage", "divorce", "moved",
        "graduation", "accident", "diagnosis", "surgery", "retirement",
        "promotion", "fired", "immigrated", "emigrated", "war",
        "deployed", "enlisted",
    )

    # Significance score: BASE, +1 above each size threshold, +1 for a major event, capped at MAX
    BASE_SIGNIFICANCE = 3
    MAX_SIGNIFICANCE = 5
    SIGNIFICANCE_SIZE_THRESHOLDS: Tuple[int, ...] = (5, 10)
    MAJOR_EVENT_KEYWORDS: Tuple[str, ...] = (
        "death", "birth", "wedding", "moved", "immigrated", "war",
    )

    # ==================== Tone ====================

    DEFAULT_TONE = "neutral"
    MAX_EMOTIONAL_TAGS = 3
    TONE_MAX_TOKENS = 100

    # Writing guidance per tone; unknown tones use "neutral"
    TONE_PRESETS: Dict[str, str] = {
        "nostalgic": "Write with warm nostalgia, focusing on cherished memories and how things used to be.",
        "happy": "Write with joy and celebration, emphasizing positive moments and achievements.",
        "sad": "Write with gentle sadness, acknowledging loss while honoring memories.",
        "reflective": "Write thoughtfully, considering lessons learned and personal growth.",
        "proud": "Write with pride in accomplishments and milestones achieved.",
        "melancholic": "Write with bittersweet emotion, acknowledging both joy and sorrow.",
        "grateful": "Write with gratitude, appreciating people and experiences.",
        "neutral": "Write factually but warmly, letting the events speak for themselves.",
    }

    # ==================== Synthesis ====================

    NARRATIVE_MAX_TOKENS = 800
    TITLE_MAX_TOKENS = 150
    WEAVE_MAX_TOKENS = 1000
    ENTITY_EXTRACTION_MAX_TOKENS = 200

    # Characters of narrative shown to the title/summary prompt
    TITLE_PROMPT_NARRATIVE_CHARS = 1000
    # Entities of each kind shown to the title/summary prompt
    TITLE_PROMPT_ENTITY_COUNT = 3

    TITLE_MAX_LENGTH = 60
    SUMMARY_MAX_LENGTH = 200
    BRIEF_SUMMARY_MAX_LENGTH = 50

    # Embedding input cap (characters)
    EMBEDDING_MAX_CHARS = 8000

    # ==================== Append & Versioning ====================

    # Characters of new information quoted in the version change summary
    CHANGE_SUMMARY_PREVIEW_CHARS = 100

    # ==================== Search ====================

    SEARCH_DEFAULT_LIMIT = 3
    # Bullets shown in the multi-hit suggested response
    SEARCH_MAX_BULLETS = 3
    BRIEF_PEOPLE_COUNT = 3
    BRIEF_DATES_COUNT = 2

    # Whether every surfaced search hit has its access stats bumped
    # True: popularity reflects what the user was shown
    # False: only retelling counts as an access
    UPDATE_ACCESS_ON_SEARCH = True

    # Minimum cosine similarity for a semantic hit
    SEMANTIC_MIN_SIMILARITY = 0.3

    # ==================== Background Processing ====================

    # Unprocessed memories fetched per user per run
    PROCESSOR_BATCH_SIZE = 100
    # Seconds between queue sweeps
    PROCESSOR_INTERVAL_SECONDS = 300


# Global configuration instance
config = StoryConfig()
