"""
@file_name: story_tool.py
@date: 2026-10-02
@description: story_manager tool for the conversation agent

Lets the agent search, retrieve, extend and create a user's stories through a
single JSON-schema described tool.

Example conversation:
    User: "Tell me about when I moved to New York"
      -> {"action": "search", "userId": "u1", "query": "moved to New York"}
    User: "Yes, tell me the whole story"
      -> {"action": "retrieve", "userId": "u1", "storyId": "story_..."}
    User: "Actually, we stayed at Ellis Island for 3 days"
      -> {"action": "append", "userId": "u1", "storyId": "story_...", "newContent": "..."}
    User: "I want to tell you about my father's funeral"
      -> {"action": "create", "userId": "u1", "title": "Father's Funeral", "newContent": "...", "entities": {...}}
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from story_keeper.utils.exceptions import StoryValidationError

from .models import ExtractedEntities
from .story_service import StoryService


def _field(name: str, alias: str, **kwargs: Any):
    return Field(default=None, validation_alias=AliasChoices(alias, name), **kwargs)


class StoryToolInput(BaseModel):
    """Arguments of one story_manager call (camelCase or snake_case keys)"""
    model_config = ConfigDict(extra="ignore")

    action: str
    user_id: Optional[str] = _field("user_id", "userId")
    query: Optional[str] = None
    story_id: Optional[str] = _field("story_id", "storyId")
    new_content: Optional[str] = _field("new_content", "newContent")
    title: Optional[str] = None
    entities: Optional[ExtractedEntities] = None


class StoryManagerTool:
    """
    Dispatches story_manager actions to StoryService

    Usage:
        tool = StoryManagerTool(service)
        result = await tool.run({"action": "search", "userId": "u1", "query": "Ellis Island"})
    """

    name = "story_manager"
    description = "Search, retrieve, and manage user stories about life events"
    input_schema: Dict[str, Any] = {
        "type": "object",
        "properties": {
            "action": {
                "type": "string",
                "enum": ["search", "retrieve", "append", "create"],
                "description": "The action to perform",
            },
            "userId": {"type": "string", "description": "The user ID"},
            "query": {
                "type": "string",
                "description": "Search query or user message (for search action)",
            },
            "storyId": {
                "type": "string",
                "description": "Story ID (for retrieve or append actions)",
            },
            "newContent": {
                "type": "string",
                "description": "New content to add (for append or create actions)",
            },
            "title": {"type": "string", "description": "Story title (for create action)"},
            "entities": {
                "type": "object",
                "description": "Extracted entities (for create action)",
                "properties": {
                    "people": {"type": "array", "items": {"type": "string"}},
                    "places": {"type": "array", "items": {"type": "string"}},
                    "dates": {"type": "array", "items": {"type": "string"}},
                    "events": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
        "required": ["action", "userId"],
    }

    def __init__(self, service: StoryService):
        self.service = service

    def definition(self) -> Dict[str, Any]:
        """Tool definition in the name / description / input_schema shape agents expect"""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    async def run(self, tool_input: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute one action

        Returns:
            The action's response model dumped to a dict

        Raises:
            StoryValidationError: Malformed input, missing arguments or unknown action
        """
        try:
            args = StoryToolInput.model_validate(tool_input)
        except ValidationError as e:
            raise StoryValidationError("Invalid story_manager input", cause=e) from e

        if not args.user_id:
            raise StoryValidationError("User ID is required", action=args.action)

        logger.debug(f"story_manager: action={args.action}, user={args.user_id}")

        if args.action == "search":
            if not args.query:
                raise StoryValidationError("Query is required for search action")
            result = await self.service.search_user_stories(args.user_id, args.query)

        elif args.action == "retrieve":
            if not args.story_id:
                raise StoryValidationError("Story ID is required for retrieve action")
            result = await self.service.get_story_for_retelling(args.story_id, args.user_id)

        elif args.action == "append":
            if not args.story_id or not args.new_content:
                raise StoryValidationError("Story ID and new content are required for append action")
            result = await self.service.append_to_story(args.story_id, args.user_id, args.new_content)

        elif args.action == "create":
            if not args.title or not args.new_content:
                raise StoryValidationError("Title and content are required for create action")
            result = await self.service.create_story_from_conversation(
                args.user_id,
                args.title,
                args.new_content,
                args.entities or ExtractedEntities(),
            )

        else:
            raise StoryValidationError(f"Unknown action: {args.action}")

        return result.model_dump(mode="json")
