"""
Private implementation of the story package

This directory contains the concrete implementation of StoryService and should
not be imported directly externally.

Module list:
- entities: Entity rendering, factual content assembly, label merging
- synonyms: Synonym table lookup for grouping
- grouper: Greedy topic grouping
- scorer: Inclusion gate and significance rating
- fallback: Timeout + fallback wrapper for capability calls
- prompts: Prompt templates
- tone: Tone analysis
- synthesizer: Narrative, titles, weaving and embeddings
- entity_extractor: Entity re-extraction from freeform text
- contradiction: Date contradiction detection
- aggregator: Memory batch -> persisted stories
- versioning: Append-and-version workflow
- search: Story search and suggested responses
- messages: User-facing messages
"""

from .aggregator import StoryAggregator
from .contradiction import ContradictionDetector
from .entity_extractor import EntityExtractor
from .fallback import call_with_fallback
from .grouper import TopicGrouper
from .scorer import SignificanceScorer
from .search import StorySearchService
from .synonyms import SynonymIndex
from .synthesizer import NarrativeSynthesizer
from .tone import ToneAnalyzer
from .versioning import StoryVersionManager

__all__ = [
    "StoryAggregator",
    "ContradictionDetector",
    "EntityExtractor",
    "call_with_fallback",
    "TopicGrouper",
    "SignificanceScorer",
    "StorySearchService",
    "SynonymIndex",
    "NarrativeSynthesizer",
    "ToneAnalyzer",
    "StoryVersionManager",
]
