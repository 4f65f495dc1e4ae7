"""
@file_name: prompts.py
@date: 2026-10-02
@description: Prompt templates for tone analysis, narrative synthesis, weaving and entity extraction
"""

# ============================================================================
# System style hint
# Passed as style_hint to TextGenerationService.generate() for prose calls
# ============================================================================
STORYTELLER_STYLE_HINT = (
    "You help an older person preserve their life stories. "
    "Stay faithful to the facts you are given and never invent names, places or dates."
)

# Passed as style_hint for calls that must answer with a single JSON object
JSON_ONLY_STYLE_HINT = "Respond with a single JSON object and nothing else."

# ============================================================================
# Tone analysis
# Used in ToneAnalyzer.analyze()
#
# Placeholder descriptions:
# - {memory_texts}: one JSON-encoded memory payload per line
# ============================================================================
TONE_ANALYSIS_PROMPT = """Analyze the emotional tone and content of these memories:

{memory_texts}

Determine:
1. Overall tone (one word): nostalgic, happy, sad, reflective, proud, anxious, excited, melancholic, grateful, bitter
2. Emotional tags (up to 3): joy, sadness, loss, achievement, fear, love, anger, regret, hope, nostalgia

Return as JSON: {{"tone": "word", "emotionalTags": ["tag1", "tag2"]}}"""

# ============================================================================
# Narrative generation
# Used in NarrativeSynthesizer.generate_narrative()
#
# Placeholder descriptions:
# - {tone_guidance}: one of StoryConfig.TONE_PRESETS
# - {content}: deterministic factual content
# ============================================================================
NARRATIVE_PROMPT = """Create a cohesive narrative from these memory fragments. {tone_guidance}

Memory fragments:
{content}

Write a flowing narrative in first person that tells this story naturally, as if the person is recounting it to a loved one. Include emotional context and connections between events. Keep it authentic to how someone would actually tell this story."""

# ============================================================================
# Title and summaries
# Used in NarrativeSynthesizer.generate_title_and_summaries()
#
# Placeholder descriptions:
# - {title_max} / {summary_max} / {brief_max}: character limits from StoryConfig
# - {narrative}: narrative truncated to TITLE_PROMPT_NARRATIVE_CHARS
# - {people} / {places} / {events}: first TITLE_PROMPT_ENTITY_COUNT entities, comma separated
# ============================================================================
TITLE_SUMMARY_PROMPT = """Based on this story narrative, create:
1. A compelling title (max {title_max} chars)
2. A full summary (max {summary_max} chars)
3. A very brief summary (max {brief_max} chars) - like "Moving from Italy to New York"

Narrative:
{narrative}

Key people: {people}
Key places: {places}
Key events: {events}

Return as JSON: {{"title": "...", "summary": "...", "briefSummary": "..."}}"""

# ============================================================================
# Narrative weaving on append
# Used in NarrativeSynthesizer.weave()
#
# Placeholder descriptions:
# - {tone}: story tone, or "same" when unknown
# - {existing}: current narrative (or content)
# - {new_information}: text supplied by the user
# ============================================================================
WEAVE_PROMPT = """Seamlessly integrate this new information into the existing narrative. Maintain the {tone} tone.

Existing narrative:
{existing}

New information to add:
{new_information}

Return the complete updated narrative with the new information naturally woven in."""

# ============================================================================
# Entity extraction
# Used in EntityExtractor.extract()
#
# Placeholder descriptions:
# - {text}: freeform text supplied by the user
# ============================================================================
ENTITY_EXTRACTION_PROMPT = """Extract entities from: "{text}"
Include the year in any date you find (for example "arrived at Ellis Island in 1955").
Return JSON: {{"people": [], "places": [], "events": [], "dates": []}}"""
