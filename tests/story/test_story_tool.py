"""Tests for the story_manager tool dispatcher."""

import pytest
import pytest_asyncio

from story_keeper.story import Story, StoryManagerTool, StoryToolInput
from story_keeper.utils.exceptions import StoryValidationError


@pytest.fixture
def tool(offline_service) -> StoryManagerTool:
    return StoryManagerTool(offline_service)


@pytest_asyncio.fixture
async def saved_story(store) -> Story:
    return await store.save_story(Story(
        user_id="u1",
        title="Coming to America",
        brief_summary="Arriving at Ellis Island",
        content="Events: immigration",
        narrative="I remember the boat.",
        places=["Ellis Island"],
    ))


class TestToolInput:
    """Tests for StoryToolInput parsing."""

    def test_camel_case_keys(self):
        args = StoryToolInput.model_validate(
            {"action": "append", "userId": "u1", "storyId": "s1", "newContent": "more"}
        )
        assert (args.user_id, args.story_id, args.new_content) == ("u1", "s1", "more")

    def test_snake_case_keys(self):
        args = StoryToolInput.model_validate({"action": "retrieve", "user_id": "u1", "story_id": "s1"})
        assert args.story_id == "s1"

    def test_definition(self, tool):
        definition = tool.definition()
        assert definition["name"] == "story_manager"
        assert definition["input_schema"]["required"] == ["action", "userId"]
        assert definition["input_schema"]["properties"]["action"]["enum"] == [
            "search", "retrieve", "append", "create",
        ]


class TestToolActions:
    """Tests for StoryManagerTool.run()."""

    @pytest.mark.asyncio
    async def test_search(self, tool, saved_story):
        result = await tool.run({"action": "search", "userId": "u1", "query": "Ellis Island"})

        assert result["found"] is True
        assert result["stories"][0]["id"] == saved_story.id

    @pytest.mark.asyncio
    async def test_retrieve(self, tool, saved_story):
        result = await tool.run({"action": "retrieve", "userId": "u1", "storyId": saved_story.id})

        assert result["success"] is True
        assert result["story"]["narrative"] == "I remember the boat."

    @pytest.mark.asyncio
    async def test_append(self, tool, saved_story):
        result = await tool.run({
            "action": "append", "userId": "u1", "storyId": saved_story.id, "newContent": "We stayed 3 days.",
        })

        assert result["success"] is True
        assert result["state"] == "stable"
        assert result["story"]["version"] == 2

    @pytest.mark.asyncio
    async def test_create(self, tool, store):
        result = await tool.run({
            "action": "create",
            "userId": "u1",
            "title": "Father's Funeral",
            "newContent": "The service was at St. Mary's.",
            "entities": {"people": ["Dad"], "places": ["St. Mary's"]},
        })

        assert result["success"] is True
        story = await store.get_story_by_id(result["story_id"], "u1")
        assert story.people == ["Dad"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool_input, message", [
        ({"action": "search", "userId": "u1"}, "Query is required for search action"),
        ({"action": "retrieve", "userId": "u1"}, "Story ID is required for retrieve action"),
        ({"action": "append", "userId": "u1", "storyId": "s1"},
         "Story ID and new content are required for append action"),
        ({"action": "create", "userId": "u1", "newContent": "text"},
         "Title and content are required for create action"),
        ({"action": "forget", "userId": "u1"}, "Unknown action: forget"),
    ])
    async def test_missing_arguments(self, tool, tool_input, message):
        with pytest.raises(StoryValidationError) as exc_info:
            await tool.run(tool_input)
        assert exc_info.value.message == message

    @pytest.mark.asyncio
    async def test_missing_user(self, tool):
        with pytest.raises(StoryValidationError):
            await tool.run({"action": "search", "query": "Ellis Island"})

    @pytest.mark.asyncio
    async def test_missing_action(self, tool):
        with pytest.raises(StoryValidationError):
            await tool.run({"userId": "u1"})
