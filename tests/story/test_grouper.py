"""Tests for topic grouping and synonym lookup."""

import pytest

from story_keeper.story import MemoryPayload, SynonymIndex, TopicGrouper
from story_keeper.story._story_impl.grouper import compute_date_range, jaccard


class TestJaccard:
    """Tests for the set overlap measure."""

    def test_identical_sets(self):
        assert jaccard({"a", "b"}, {"a", "b"}) == 1.0

    def test_partial_overlap(self):
        assert jaccard({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)

    def test_both_empty_is_zero(self):
        assert jaccard(set(), set()) == 0.0


class TestSynonymIndex:
    """Tests for normalized synonym membership."""

    def test_dad_and_father_share_key(self):
        index = SynonymIndex()
        assert index.share_key(["Dad"], ["Father"])

    def test_possessive_is_normalized(self):
        index = SynonymIndex()
        assert "father" in index.keys_for("Dad's")

    def test_multi_word_phrase_matches(self):
        index = SynonymIndex()
        assert "death" in index.keys_for("Dad passed away")
        assert "hospital" in index.keys_for("Mount Sinai Hospital")

    def test_no_substring_matching(self):
        """'pop' must not match inside 'popular'."""
        index = SynonymIndex()
        assert not index.share_key(["popular singer"], ["Father"])

    def test_canonical_of_unknown_term(self):
        assert SynonymIndex().canonical("Giuseppe") is None

    def test_custom_table(self):
        index = SynonymIndex({"sibling": ["brother", "sister"]})
        assert index.share_key(["my brother"], ["Sister"])
        assert not index.share_key(["Dad"], ["Father"])


class TestTopicSimilarity:
    """Tests for the weighted similarity score."""

    def test_full_overlap_scores_one(self):
        grouper = TopicGrouper()
        payload = MemoryPayload(people=["Giuseppe"], places=["Ellis Island"], events=["immigration"])
        score = grouper.similarity(["Giuseppe"], ["Ellis Island"], ["immigration"], payload)
        assert score == 1.0

    def test_disjoint_scores_zero(self):
        grouper = TopicGrouper()
        payload = MemoryPayload(people=["Rosa"], places=["Naples"], events=["baptism"])
        assert grouper.similarity(["Giuseppe"], ["Ellis Island"], ["wedding"], payload) == 0.0

    def test_synonym_bonus_for_people(self):
        grouper = TopicGrouper()
        payload = MemoryPayload(people=["Father"])
        assert grouper.similarity(["Dad"], [], [], payload) == pytest.approx(0.2)

    def test_synonym_bonus_for_events(self):
        grouper = TopicGrouper()
        payload = MemoryPayload(events=["funeral"])
        assert grouper.similarity([], [], ["passed away"], payload) == pytest.approx(0.2)

    def test_case_insensitive_overlap(self):
        grouper = TopicGrouper()
        payload = MemoryPayload(places=["ellis island"])
        assert grouper.similarity([], ["Ellis Island"], [], payload) == pytest.approx(0.3)

    def test_score_is_clamped(self):
        grouper = TopicGrouper()
        payload = MemoryPayload(people=["Dad"], places=["Hospital"], events=["funeral"])
        score = grouper.similarity(["Dad"], ["Hospital"], ["funeral"], payload)
        assert score == 1.0


class TestTopicGrouper:
    """Tests for greedy clustering."""

    def test_disjoint_memories_form_singletons(self, make_memory):
        memories = [
            make_memory(people=["Rosa"], places=["Naples"], events=["baptism"]),
            make_memory(people=["Tom"], places=["Chicago"], events=["first job"]),
            make_memory(people=["Ann"], places=["Boston"], events=["graduation"]),
        ]
        groups = TopicGrouper().group(memories)

        assert len(groups) == 3
        assert [g.memory_ids for g in groups] == [[m.id] for m in memories]

    def test_every_memory_in_exactly_one_group(self, giuseppe_memories, dad_memories):
        memories = giuseppe_memories + dad_memories
        groups = TopicGrouper().group(memories)

        ids = [mid for g in groups for mid in g.memory_ids]
        assert sorted(ids) == sorted(m.id for m in memories)

    def test_related_memories_are_grouped(self, giuseppe_memories, dad_memories):
        groups = TopicGrouper().group(giuseppe_memories + dad_memories)

        assert len(groups) == 2
        assert groups[0].memory_ids == [m.id for m in giuseppe_memories]
        assert groups[1].memory_ids == [m.id for m in dad_memories]

    def test_group_entities_are_unions(self, giuseppe_memories):
        group = TopicGrouper().group(giuseppe_memories)[0]

        assert group.people == ["Giuseppe", "Maria"]
        assert group.places == ["Ellis Island", "New York"]
        assert group.events == ["immigration"]

    def test_synonyms_group_dad_and_father(self, make_memory):
        memories = [
            make_memory(people=["Dad"], events=["passed away"]),
            make_memory(people=["my father"], events=["funeral"]),
        ]
        groups = TopicGrouper().group(memories)
        assert len(groups) == 1

    def test_threshold_is_strict(self, make_memory):
        """A score equal to the threshold does not join."""
        memories = [
            make_memory(places=["Ellis Island"]),
            make_memory(places=["Ellis Island"]),
        ]
        groups = TopicGrouper(threshold=0.3).group(memories)
        assert len(groups) == 2

    def test_empty_input(self):
        assert TopicGrouper().group([]) == []


class TestDateRange:
    """Tests for group date ranges."""

    def test_range_from_created_at_and_years(self, make_memory):
        memories = [
            make_memory(dates=["summer of 1955"], minutes=10),
            make_memory(dates=["1948", "winter 1960"], minutes=5),
        ]
        date_range = compute_date_range(memories)

        assert date_range.start == memories[1].created_at
        assert date_range.end == memories[0].created_at
        assert date_range.earliest_year == 1948
        assert date_range.latest_year == 1960

    def test_no_years(self, make_memory):
        date_range = compute_date_range([make_memory(dates=["long ago"])])
        assert date_range.earliest_year is None
        assert date_range.latest_year is None

    def test_no_memories(self):
        assert compute_date_range([]) is None
