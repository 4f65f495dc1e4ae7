"""Tests for InMemoryStoryStore and the shared ranking helpers."""

from datetime import timedelta

import pytest

from story_keeper.story import InMemoryStoryStore, Story, StoryQuery, StoryVersion
from story_keeper.story.store import lexical_score, rank_stories
from story_keeper.utils.exceptions import PersistenceError, VersionConflictError
from story_keeper.utils.text import extract_keywords

from conftest import BASE_TIME


def _story(user_id="u1", **overrides) -> Story:
    data = dict(user_id=user_id, title="Coming to America", content="Events: immigration")
    data.update(overrides)
    return Story(**data)


class TestStoryCrud:
    """Tests for save/get/update/delete."""

    @pytest.mark.asyncio
    async def test_returned_stories_are_copies(self, store):
        story = await store.save_story(_story(people=["Giuseppe"]))
        story.people.append("Mutated")

        fetched = await store.get_story_by_id(story.id, "u1")
        fetched.people.append("Also mutated")

        assert (await store.get_story_by_id(story.id, "u1")).people == ["Giuseppe"]

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, store):
        story = await store.save_story(_story())
        with pytest.raises(PersistenceError):
            await store.save_story(story)

    @pytest.mark.asyncio
    async def test_other_users_story_invisible(self, store):
        story = await store.save_story(_story())
        assert await store.get_story_by_id(story.id, "u2") is None

    @pytest.mark.asyncio
    async def test_update_refreshes_updated_at(self, store):
        story = await store.save_story(_story())

        updated = await store.update_story(story.id, "u1", {"title": "New title", "version": 2})

        assert updated.title == "New title"
        assert updated.version == 2
        assert updated.updated_at >= story.updated_at

    @pytest.mark.asyncio
    async def test_version_conflict(self, store):
        story = await store.save_story(_story())
        await store.update_story(story.id, "u1", {"version": 2}, expected_version=1)

        with pytest.raises(VersionConflictError) as exc_info:
            await store.update_story(story.id, "u1", {"version": 2}, expected_version=1)

        assert exc_info.value.actual_version == 2

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, store):
        story = await store.save_story(_story())
        with pytest.raises(PersistenceError):
            await store.update_story(story.id, "u1", {"user_id": "u2"})

    @pytest.mark.asyncio
    async def test_update_missing_story(self, store):
        with pytest.raises(PersistenceError):
            await store.update_story("story_missing", "u1", {"title": "x"})

    @pytest.mark.asyncio
    async def test_delete_removes_versions(self, store):
        story = await store.save_story(_story())
        await store.insert_version(StoryVersion(story_id=story.id, version_number=1, content="c"))

        assert await store.delete_story(story.id, "u1")
        assert await store.get_versions(story.id) == []

    @pytest.mark.asyncio
    async def test_delete_other_users_story(self, store):
        story = await store.save_story(_story())
        assert not await store.delete_story(story.id, "u2")

    @pytest.mark.asyncio
    async def test_list_most_recent_first(self, store):
        old = await store.save_story(_story(updated_at=BASE_TIME))
        new = await store.save_story(_story(updated_at=BASE_TIME + timedelta(days=1)))

        assert [s.id for s in await store.list_stories("u1")] == [new.id, old.id]
        assert [s.id for s in await store.list_stories("u1", limit=1, offset=1)] == [old.id]


class TestVersions:
    """Tests for the version log."""

    @pytest.mark.asyncio
    async def test_versions_sorted_and_numbered(self, store):
        await store.insert_version(StoryVersion(story_id="s1", version_number=2, content="b"))
        first = await store.insert_version(StoryVersion(story_id="s1", version_number=1, content="a"))

        versions = await store.get_versions("s1")

        assert [v.version_number for v in versions] == [1, 2]
        assert first.id == 2

    @pytest.mark.asyncio
    async def test_duplicate_version_number_rejected(self, store):
        await store.insert_version(StoryVersion(story_id="s1", version_number=1, content="a"))
        with pytest.raises(PersistenceError):
            await store.insert_version(StoryVersion(story_id="s1", version_number=1, content="b"))


class TestAtomic:
    """Tests for atomic() rollback."""

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, store):
        story = await store.save_story(_story())

        with pytest.raises(PersistenceError):
            async with store.atomic():
                await store.insert_version(StoryVersion(story_id=story.id, version_number=1, content="c"))
                await store.update_story(story.id, "u1", {"version": 2})
                raise PersistenceError("late failure")

        assert await store.get_versions(story.id) == []
        assert (await store.get_story_by_id(story.id, "u1")).version == 1

    @pytest.mark.asyncio
    async def test_commit_on_success(self, store):
        story = await store.save_story(_story())

        async with store.atomic():
            await store.insert_version(StoryVersion(story_id=story.id, version_number=1, content="c"))
            await store.update_story(story.id, "u1", {"version": 2})

        assert len(await store.get_versions(story.id)) == 1
        assert (await store.get_story_by_id(story.id, "u1")).version == 2


class TestRanking:
    """Tests for rank_stories()."""

    def test_lexical_score_is_keyword_coverage(self):
        story = _story(places=["Ellis Island"])
        assert lexical_score(story, ["ellis", "brooklyn"]) == 0.5
        assert lexical_score(story, []) == 0.0

    def test_semantic_hits_first(self):
        lexical = _story(title="Ellis Island")
        semantic = _story(title="The voyage", embedding=[1.0, 0.0])

        ranked = rank_stories([lexical, semantic], StoryQuery(text="Ellis Island", embedding=[1.0, 0.0]), 3)

        assert [s.id for s in ranked] == [semantic.id, lexical.id]

    def test_weak_semantic_match_ignored(self):
        story = _story(title="The voyage", embedding=[0.0, 1.0])
        ranked = rank_stories([story], StoryQuery(text="wedding", embedding=[1.0, 0.0]), 3)
        assert ranked == []

    def test_lexical_ties_broken_by_recency(self):
        old = _story(title="Ellis Island", updated_at=BASE_TIME)
        new = _story(title="Ellis Island", updated_at=BASE_TIME + timedelta(hours=1))

        ranked = rank_stories([old, new], StoryQuery(text="Ellis Island"), 3)

        assert [s.id for s in ranked] == [new.id, old.id]

    def test_limit(self):
        stories = [_story(title="Ellis Island") for _ in range(5)]
        assert len(rank_stories(stories, StoryQuery(text="Ellis Island"), 2)) == 2

    def test_stopwords_do_not_match(self):
        assert extract_keywords("Tell me about the story") == []
        assert rank_stories([_story()], StoryQuery(text="Tell me about the story"), 3) == []


class TestStatsAndProcessedIds:
    """Tests for aggregate reads."""

    @pytest.mark.asyncio
    async def test_stats(self, store):
        await store.save_story(_story(people=["Giuseppe", "Maria"], places=["Ellis Island"], events=["immigration"]))
        await store.save_story(_story(people=["Maria"], events=["wedding"]))
        await store.save_story(_story(user_id="u2", people=["Someone"]))

        stats = await store.get_story_stats("u1")

        assert stats.total_stories == 2
        assert stats.unique_people == 2
        assert stats.unique_places == 1
        assert stats.unique_events == 2
        assert stats.first_story_at <= stats.latest_story_at

    @pytest.mark.asyncio
    async def test_empty_stats(self, store):
        stats = await store.get_story_stats("nobody")
        assert stats.total_stories == 0
        assert stats.first_story_at is None

    @pytest.mark.asyncio
    async def test_processed_memory_ids(self, store):
        await store.save_story(_story(source_memory_ids=["mem_1", "mem_2"]))
        await store.save_story(_story(source_memory_ids=["mem_3"]))
        await store.save_story(_story(user_id="u2", source_memory_ids=["mem_9"]))

        assert await store.get_processed_memory_ids("u1") == {"mem_1", "mem_2", "mem_3"}

    @pytest.mark.asyncio
    async def test_record_access(self, store):
        story = await store.save_story(_story())

        await store.record_access(story.id, "u1")
        await store.record_access(story.id, "u1")
        await store.record_access(story.id, "u2")

        assert (await store.get_story_by_id(story.id, "u1")).access_count == 2


def test_store_is_a_story_store():
    from story_keeper.story import StoryStore

    assert isinstance(InMemoryStoryStore(), StoryStore)
