"""
story_keeper - Memory aggregation and story synthesis engine

Turns per-turn memory records of a storyteller's conversations into durable,
narrated, versioned stories, and lets the conversation layer search, retell
and extend them.

Packages:
- story: Models, StoryService, StoryStore implementations, tool and processor
- capabilities: Text generation and embedding contracts (OpenAI-backed)
- repository: Data access layer for the MySQL store
- utils: Database client, retry, text, timezone and lock helpers
"""

__version__ = "0.1.0"
