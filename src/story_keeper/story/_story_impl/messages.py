"""
@file_name: messages.py
@date: 2026-10-02
@description: User-facing messages returned by the public story operations

All messages are warm, first-person sentences the conversation layer can
relay to the storyteller as-is.
"""

# ============================================================================
# Search
# ============================================================================
SEARCH_NOTHING_FOUND = (
    "I couldn't find any stories about that. "
    "Would you like to tell me about it so I can create a new story?"
)
SEARCH_FAILED = (
    "I had trouble searching for stories. "
    "Could you tell me more about what you're looking for?"
)

# Placeholder: {brief} - brief summary (or title) of the only hit
SEARCH_SINGLE_HIT = (
    'I found your story about "{brief}". '
    "Would you like me to tell you this story, or would you like to add more details to it?"
)

# Placeholders: {count} - number of hits, {bullets} - "• brief" lines
SEARCH_MULTIPLE_HITS = (
    "I found {count} related stories:\n{bullets}\n\n"
    "Which one would you like to explore, or shall I tell you about all of them?"
)

# ============================================================================
# Retelling
# ============================================================================
RETELL_NOT_FOUND = "I couldn't find that story."
RETELL_FAILED = "I had trouble retrieving that story."

# ============================================================================
# Append
# ============================================================================
APPEND_NOT_FOUND = "I couldn't find that story to update."
APPEND_SUCCESS = "I've added that information to your story."
APPEND_FAILED = "I had trouble updating that story."

# ============================================================================
# Create
# ============================================================================
# Placeholder: {title} - title of the new story
CREATE_SUCCESS = 'I\'ve created a new story: "{title}"'
CREATE_FAILED = "I had trouble creating that story."
