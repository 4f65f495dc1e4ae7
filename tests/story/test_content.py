"""Tests for entity item coercion and factual content assembly."""

import pytest
from pydantic import ValidationError

from story_keeper.story import (
    EntityCategory,
    MemoryPayload,
    PersonItem,
    PlaceItem,
    Relationship,
    Story,
)
from story_keeper.story._story_impl.entities import (
    build_factual_content,
    collect_labels,
    collect_relationships,
    merge_labels,
    render_payload,
)


class TestEntityItems:
    """Tests for tagged entity item variants."""

    def test_string_becomes_label(self):
        assert PersonItem.model_validate("Giuseppe").label == "Giuseppe"

    def test_label_from_first_present_key(self):
        place = PlaceItem.model_validate({"location": "Ellis Island", "type": "island"})
        assert place.label == "Ellis Island"
        assert place.type == "island"

    def test_blank_label_rejected(self):
        with pytest.raises(ValidationError):
            PersonItem.model_validate({"relationship": "father"})

    def test_payload_drops_unreadable_entries(self):
        payload = MemoryPayload(people=["Giuseppe", {"relationship": "uncle"}, ""])
        assert payload.labels(EntityCategory.PEOPLE) == ["Giuseppe"]

    def test_payload_accepts_single_value(self):
        payload = MemoryPayload(places="Naples")
        assert payload.labels(EntityCategory.PLACES) == ["Naples"]

    def test_relationship_aliases(self):
        rel = Relationship.model_validate({"person1": "Giuseppe", "person2": "Maria", "type": "father"})
        assert rel.label == "Giuseppe is father of Maria"
        assert rel.model_dump(by_alias=True)["from"] == "Giuseppe"

    def test_relationship_from_text(self):
        assert Relationship.model_validate("cousins").label == "cousins"


class TestFactualContent:
    """Tests for deterministic content assembly."""

    def test_render_order_and_format(self, make_memory):
        memory = make_memory(
            people=[{"name": "Giuseppe", "relationship": "grandfather"}],
            places=["Ellis Island"],
            events=[{"description": "immigration", "date": "1955"}],
            dates=["1955"],
        )
        assert render_payload(memory.payload) == (
            "Events: immigration (1955)\n"
            "People: Giuseppe (grandfather)\n"
            "Places: Ellis Island\n"
            "When: 1955"
        )

    def test_empty_categories_skipped(self, make_memory):
        memory = make_memory(people=["Rosa"])
        assert render_payload(memory.payload) == "People: Rosa"

    def test_blocks_sorted_by_created_at(self, make_memory):
        late = make_memory(people=["Late"], minutes=30)
        early = make_memory(people=["Early"], minutes=1)
        assert build_factual_content([late, early]) == "People: Early\n\nPeople: Late"

    def test_deterministic(self, giuseppe_memories):
        assert build_factual_content(giuseppe_memories) == build_factual_content(list(giuseppe_memories))

    def test_empty_memories_skipped(self, make_memory):
        assert build_factual_content([make_memory(), make_memory(people=["Rosa"])]) == "People: Rosa"


class TestLabelHelpers:
    """Tests for label collection and merging."""

    def test_collect_dates(self, giuseppe_memories):
        assert collect_labels(giuseppe_memories, EntityCategory.DATES) == ["arrived at Ellis Island in 1955"]

    def test_collect_relationships_deduplicates(self, make_memory):
        rel = {"from": "Giuseppe", "to": "Maria", "relation": "father"}
        memories = [make_memory(relationships=[rel]), make_memory(relationships=[rel])]
        assert len(collect_relationships(memories)) == 1

    def test_merge_preserves_order(self):
        assert merge_labels(["Giuseppe", "Maria"], ["Maria", "Rosa"]) == ["Giuseppe", "Maria", "Rosa"]


class TestStoryModel:
    """Tests for Story invariants."""

    def test_source_ids_deduplicated(self):
        story = Story(user_id="u1", title="t", content="c", source_memory_ids=["a", "b", "a"])
        assert story.source_memory_ids == ["a", "b"]

    def test_significance_bounds(self):
        with pytest.raises(ValidationError):
            Story(user_id="u1", title="t", content="c", significance_rating=6)

    def test_text_falls_back_to_content(self):
        assert Story(user_id="u1", title="t", content="facts").text == "facts"

    def test_generated_id(self):
        assert Story(user_id="u1", title="t", content="c").id.startswith("story_")
