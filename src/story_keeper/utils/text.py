"""
General text processing utilities

@file_name: text.py
@date: 2026-10-02
@description: Text helpers shared by the story pipeline

Features:
1. extract_keywords - Keyword extraction for lexical story search
2. truncate_text - Truncation with suffix
3. parse_json_object - Lenient parsing of strict-JSON LLM responses
4. find_year / shared_words - Helpers for date contradiction checks
5. normalize_term - Canonical form used by synonym lookup
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Set


# =============================================================================
# Stop Words
# =============================================================================

ENGLISH_STOPWORDS: Set[str] = {
    "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
    "in", "on", "at", "to", "for", "of", "and", "or", "but", "not",
    "with", "from", "by", "as", "this", "that", "it", "its", "i", "you",
    "he", "she", "we", "they", "my", "your", "his", "her", "our", "their",
    "what", "how", "why", "when", "where", "which", "who", "whom",
    "can", "could", "would", "should", "will", "do", "does", "did",
    "have", "has", "had", "am", "if", "then", "so", "than", "just",
    "about", "into", "over", "after", "before", "me", "tell", "story",
    "stories", "remember", "time", "there", "some", "any", "all",
}

YEAR_PATTERN = re.compile(r"\b(19|20)\d{2}\b")

_JSON_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_PUNCTUATION_PATTERN = re.compile(r"[^\w\s]")
_WHITESPACE_PATTERN = re.compile(r"\s+")


# =============================================================================
# Keyword Extraction
# =============================================================================

def extract_keywords(
    text: str,
    max_keywords: int = 8,
    min_length: int = 2,
    stopwords: Optional[Set[str]] = None
) -> List[str]:
    """
    Extract keywords from text

    Args:
        text: Input text
        max_keywords: Maximum number of keywords
        min_length: Minimum word length
        stopwords: Custom stop word set (defaults to built-in stop words)

    Returns:
        Lowercased keywords (deduplicated, order preserved)

    Example:
        >>> extract_keywords("Tell me about Ellis Island")
        ['ellis', 'island']
    """
    if not text:
        return []

    if stopwords is None:
        stopwords = ENGLISH_STOPWORDS

    keywords: List[str] = []
    for word in re.findall(r"[A-Za-z0-9']+", text.lower()):
        word = word.strip("'")
        if word.endswith("'s"):
            word = word[:-2]
        if len(word) < min_length or word in stopwords or word in keywords:
            continue
        keywords.append(word)
        if len(keywords) >= max_keywords:
            break

    return keywords


# =============================================================================
# Text Truncation
# =============================================================================

def truncate_text(
    text: str,
    max_length: int = 100,
    suffix: str = "..."
) -> str:
    """
    Truncate text to max_length, including the suffix

    Example:
        >>> truncate_text("This is a very long text", max_length=10)
        'This is...'
    """
    if not text:
        return ""

    if len(text) <= max_length:
        return text

    available_length = max_length - len(suffix)
    if available_length <= 0:
        return suffix

    return text[:available_length] + suffix


# =============================================================================
# LLM Response Parsing
# =============================================================================

def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from an LLM response

    Accepts a bare object or one wrapped in a ``` / ```json fence.

    Raises:
        ValueError: If the text is not a JSON object
    """
    if not text or not text.strip():
        raise ValueError("Empty response")

    cleaned = _JSON_FENCE_PATTERN.sub("", text.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValueError(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


# =============================================================================
# Date & Word Helpers
# =============================================================================

def find_year(text: str) -> Optional[str]:
    """First 4-digit year (19xx or 20xx) in text, or None"""
    match = YEAR_PATTERN.search(text or "")
    return match.group(0) if match else None


def find_years(text: str) -> List[int]:
    """All 4-digit years (19xx or 20xx) in text"""
    return [int(m.group(0)) for m in YEAR_PATTERN.finditer(text or "")]


def shared_words(a: str, b: str, min_length: int = 4) -> Set[str]:
    """Lowercase whitespace-delimited words of at least min_length present in both strings"""
    words_a = {w for w in (a or "").lower().split() if len(w) >= min_length}
    words_b = {w for w in (b or "").lower().split() if len(w) >= min_length}
    return words_a & words_b


def normalize_term(term: str) -> str:
    """
    Lowercase, strip possessive 's and punctuation, collapse whitespace

    Example:
        >>> normalize_term("Dad's")
        'dad'
        >>> normalize_term("Mount Sinai Hospital.")
        'mount sinai hospital'
    """
    if not term:
        return ""
    text = term.lower().replace("’", "'")
    text = re.sub(r"'s\b", "", text)
    text = _PUNCTUATION_PATTERN.sub(" ", text)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()
