"""Tests for story row conversion and DatabaseStoryStore over a mocked client."""

import json
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

import aiomysql
import pytest

from story_keeper.repository import StoryRepository, StoryVersionRepository
from story_keeper.story import ChangeType, Relationship, Story, StoryQuery, StoryVersion
from story_keeper.story.database_store import DatabaseStoryStore
from story_keeper.utils.database import AsyncDatabaseClient
from story_keeper.utils.exceptions import PersistenceError, VersionConflictError

from conftest import BASE_TIME


def _story(**overrides) -> Story:
    data = dict(
        id="story_1",
        user_id="u1",
        title="Coming to America",
        content="Events: immigration",
        narrative="I remember the boat.",
        embedding=[0.1, 0.2],
        people=["Giuseppe", "Maria"],
        places=["Ellis Island"],
        relationships=[Relationship(from_person="Giuseppe", to_person="Maria", relation="father")],
        source_memory_ids=["mem_1", "mem_2"],
        conversation_ids=["conv_1"],
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
    )
    data.update(overrides)
    return Story(**data)


def _row(**overrides):
    row = StoryRepository(MagicMock())._entity_to_row(_story(**overrides))
    row.setdefault("access_count", 0)
    return row


@pytest.fixture
def db():
    client = MagicMock(spec=AsyncDatabaseClient)

    @asynccontextmanager
    async def transaction():
        yield

    client.transaction = transaction
    return client


class TestStoryRowConversion:
    """Tests for StoryRepository row mapping."""

    def test_round_trip(self):
        repo = StoryRepository(MagicMock())
        story = _story()

        assert repo._row_to_entity(repo._entity_to_row(story)) == story

    def test_json_columns(self):
        row = _row()

        assert row["story_id"] == "story_1"
        assert json.loads(row["people"]) == ["Giuseppe", "Maria"]
        assert json.loads(row["relationships"]) == [
            {"from": "Giuseppe", "to": "Maria", "relation": "father", "details": None}
        ]
        assert row["privacy_level"] == "private"
        assert row["is_complete"] == 0
        assert row["created_at"].tzinfo is None

    def test_missing_embedding_stays_null(self):
        assert _row(embedding=None)["embedding"] is None

    def test_bytes_and_decoded_json(self):
        repo = StoryRepository(MagicMock())
        row = _row()
        row["people"] = b'["Giuseppe"]'
        row["places"] = ["Ellis Island"]

        story = repo._row_to_entity(row)

        assert story.people == ["Giuseppe"]
        assert story.places == ["Ellis Island"]

    def test_unreadable_json_uses_default(self):
        row = _row()
        row["dates"] = "not json"
        assert StoryRepository(MagicMock())._row_to_entity(row).dates == []

    def test_version_row(self):
        repo = StoryVersionRepository(MagicMock())
        version = StoryVersion(id=4, story_id="story_1", version_number=2, content="c",
                               change_summary="Added new information: x...", created_at=BASE_TIME)

        row = repo._entity_to_row(version)
        row["id"] = 4

        assert row["change_type"] == "append"
        assert repo._row_to_entity(row) == version
        assert repo._row_to_entity(row).change_type == ChangeType.APPEND

    def test_table_name_required(self):
        class Nameless(StoryRepository):
            table_name = ""

        with pytest.raises(ValueError):
            Nameless(MagicMock())


class TestDatabaseStoryStore:
    """Tests for DatabaseStoryStore error mapping and query composition."""

    @pytest.mark.asyncio
    async def test_save(self, db):
        db.insert.return_value = 1

        await DatabaseStoryStore(db).save_story(_story())

        table, row = db.insert.call_args.args
        assert table == "stories"
        assert row["story_id"] == "story_1"

    @pytest.mark.asyncio
    async def test_driver_error_becomes_persistence_error(self, db):
        db.insert.side_effect = aiomysql.OperationalError(2006, "MySQL server has gone away")

        with pytest.raises(PersistenceError) as exc_info:
            await DatabaseStoryStore(db).save_story(_story())

        assert isinstance(exc_info.value.cause, aiomysql.OperationalError)

    @pytest.mark.asyncio
    async def test_get_scoped_to_user(self, db):
        db.get.return_value = []

        assert await DatabaseStoryStore(db).get_story_by_id("story_1", "u2") is None
        assert db.get.call_args.kwargs["filters"] == {"story_id": "story_1", "user_id": "u2"}

    @pytest.mark.asyncio
    async def test_update_with_version_guard(self, db):
        db.update.return_value = 1
        db.get.return_value = [_row(version=2)]

        updated = await DatabaseStoryStore(db).update_story("story_1", "u1", {"version": 2}, expected_version=1)

        assert updated.version == 2
        assert db.update.call_args.kwargs["filters"] == {"story_id": "story_1", "user_id": "u1", "version": 1}

    @pytest.mark.asyncio
    async def test_update_version_conflict(self, db):
        db.update.return_value = 0
        db.get.return_value = [_row(version=3)]

        with pytest.raises(VersionConflictError) as exc_info:
            await DatabaseStoryStore(db).update_story("story_1", "u1", {"version": 2}, expected_version=1)

        assert exc_info.value.actual_version == 3

    @pytest.mark.asyncio
    async def test_update_missing_story(self, db):
        db.update.return_value = 0
        db.get.return_value = []

        with pytest.raises(PersistenceError):
            await DatabaseStoryStore(db).update_story("story_1", "u1", {"title": "x"})

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_fields(self, db):
        with pytest.raises(PersistenceError):
            await DatabaseStoryStore(db).update_story("story_1", "u1", {"user_id": "u2"})
        db.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_version(self, db):
        db.insert.side_effect = aiomysql.IntegrityError(1062, "Duplicate entry")

        with pytest.raises(PersistenceError) as exc_info:
            await DatabaseStoryStore(db).insert_version(
                StoryVersion(story_id="story_1", version_number=1, content="c")
            )

        assert exc_info.value.message == "Version already recorded"

    @pytest.mark.asyncio
    async def test_search_semantic_then_lexical(self, db):
        semantic_row = _row(id="story_sem", title="The voyage")
        lexical_row = _row(id="story_lex", title="Ellis Island")
        db.semantic_search.return_value = [(semantic_row, 0.9)]
        db.execute.return_value = [semantic_row, lexical_row]

        stories = await DatabaseStoryStore(db).search_stories(
            "u1", StoryQuery(text="Ellis Island", embedding=[0.1, 0.2]), limit=3
        )

        assert [s.id for s in stories] == ["story_sem", "story_lex"]
        assert db.semantic_search.call_args.kwargs["filters"] == {"user_id": "u1"}

    @pytest.mark.asyncio
    async def test_search_without_keywords_skips_lexical_query(self, db):
        stories = await DatabaseStoryStore(db).search_stories("u1", StoryQuery(text="tell me about it"))

        assert stories == []
        db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_processed_memory_ids(self, db):
        db.execute.return_value = [
            {"source_memory_ids": '["mem_1", "mem_2"]'},
            {"source_memory_ids": None},
            {"source_memory_ids": '["mem_2", "mem_3"]'},
        ]

        assert await DatabaseStoryStore(db).get_processed_memory_ids("u1") == {"mem_1", "mem_2", "mem_3"}

    @pytest.mark.asyncio
    async def test_delete_removes_versions(self, db):
        db.delete.return_value = 1

        assert await DatabaseStoryStore(db).delete_story("story_1", "u1")

        tables = [c.args[0] for c in db.delete.call_args_list]
        assert tables == ["stories", "story_versions"]

    @pytest.mark.asyncio
    async def test_delete_missing(self, db):
        db.delete.return_value = 0

        assert not await DatabaseStoryStore(db).delete_story("story_1", "u1")
        assert db.delete.call_count == 1


class TestAtomic:
    """Tests for DatabaseStoryStore.atomic()."""

    @staticmethod
    def _failing_commit(db):
        @asynccontextmanager
        async def transaction():
            yield
            raise aiomysql.OperationalError(2013, "Lost connection to MySQL server during query")

        db.transaction = transaction

    @pytest.mark.asyncio
    async def test_commit_error_becomes_persistence_error(self, db):
        self._failing_commit(db)

        with pytest.raises(PersistenceError) as exc_info:
            async with DatabaseStoryStore(db).atomic():
                pass

        assert isinstance(exc_info.value.cause, aiomysql.OperationalError)

    @pytest.mark.asyncio
    async def test_store_errors_pass_through(self, db):
        with pytest.raises(VersionConflictError):
            async with DatabaseStoryStore(db).atomic():
                raise VersionConflictError("story_1", 1, 2)

    @pytest.mark.asyncio
    async def test_append_reports_commit_failure(self, db):
        from story_keeper.story import AppendState, StoryService

        self._failing_commit(db)
        db.get.return_value = [_row(version=1)]
        db.insert.return_value = 1
        db.update.return_value = 1
        service = StoryService(DatabaseStoryStore(db))

        response = await service.append_to_story(
            "story_1", "u1", "We stayed 3 days.", check_contradictions=False
        )

        assert response.success is False
        assert response.state == AppendState.FAILED
