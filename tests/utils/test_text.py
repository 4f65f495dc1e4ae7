"""Tests for text helpers."""

import pytest

from story_keeper.utils.text import (
    extract_keywords,
    find_year,
    find_years,
    normalize_term,
    parse_json_object,
    shared_words,
    truncate_text,
)


class TestExtractKeywords:
    def test_stopwords_removed(self):
        assert extract_keywords("Tell me about Ellis Island") == ["ellis", "island"]

    def test_possessive_stripped_and_deduplicated(self):
        assert extract_keywords("Dad's hospital, dad hospital") == ["dad", "hospital"]

    def test_max_keywords(self):
        assert len(extract_keywords("alpha beta gamma delta epsilon", max_keywords=2)) == 2

    def test_empty(self):
        assert extract_keywords("") == []


class TestTruncateText:
    def test_short_text_unchanged(self):
        assert truncate_text("short", 10) == "short"

    def test_suffix_counts_toward_length(self):
        assert truncate_text("This is a very long text", max_length=10) == "This is..."


class TestParseJsonObject:
    def test_bare_object(self):
        assert parse_json_object('{"tone": "happy"}') == {"tone": "happy"}

    def test_fenced_object(self):
        assert parse_json_object('```json\n{"tone": "happy"}\n```') == {"tone": "happy"}

    @pytest.mark.parametrize("text", ["", "not json", "[1, 2]"])
    def test_rejects(self, text):
        with pytest.raises(ValueError):
            parse_json_object(text)


class TestDateHelpers:
    def test_find_year(self):
        assert find_year("arrived in 1955, left in 1960") == "1955"
        assert find_year("last summer") is None

    def test_find_years(self):
        assert find_years("from 1955 to 2001") == [1955, 2001]

    def test_shared_words_ignores_short_words(self):
        assert shared_words("the war in 1944", "the war ended 1945") == set()
        assert shared_words("arrived Ellis 1955", "arrived Ellis 1956") == {"arrived", "ellis"}


class TestNormalizeTerm:
    def test_possessive_and_punctuation(self):
        assert normalize_term("Dad's") == "dad"
        assert normalize_term("Mount  Sinai Hospital.") == "mount sinai hospital"

    def test_curly_apostrophe(self):
        assert normalize_term("Mom’s") == "mom"
