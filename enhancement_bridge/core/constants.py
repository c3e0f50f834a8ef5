"""
System-wide constants for the enhancement bridge.
"""

from enum import Enum


# =============================================================================
# Enums
# =============================================================================


class Variant(str, Enum):
    """Ticket families handled by the bridge."""

    ENHANCEMENT = "enhancement"
    STORY = "story"


class ConnectionState(str, Enum):
    """Push channel connection states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class PipelineStage(str, Enum):
    """Progress stages broadcast while handling a ticket."""

    TRIGGERED = "triggered"
    FETCHING = "fetching"
    GENERATING = "generating"
    STORED = "stored"
    COMMENTED = "commented"
    IMPORTING = "importing"
    IMPORTED = "imported"
    FAILED = "failed"


# =============================================================================
# API Constants
# =============================================================================

API_PREFIX = "/api"
WS_STATUS_PATH = "/ws/status"

NO_RELEVANT_UPDATES = "No relevant updates."

# =============================================================================
# Placeholders
# =============================================================================

NO_CONTENT = "No content available."

NO_SUMMARY = "No summary provided"
NO_DESCRIPTION = "No Description available."
NO_I_WANT = "No 'I Want' data found."
NO_SO_THAT = "No 'So That' data found."
NO_ACCEPTANCE_CRITERIA = "No acceptance criteria provided"

NO_USER_STORY_SUMMARY = "No User Story Summary"
NO_CHECK_POINTS = "No Check Points"
NO_VALIDATIONS = "No Validations"

# Fallbacks substituted into prompt templates
PROMPT_FALLBACKS = {
    "description": "No description provided",
    "i_want": "No requirement specified",
    "so_that": "No purpose specified",
    "acceptance_criteria": "No acceptance criteria specified",
    "user_story_summary": "No user story summary specified",
    "check_points": "No check points specified",
    "validations": "No validations specified",
}

# =============================================================================
# Record identifiers
# =============================================================================

RECORD_ID_SUFFIX = {
    Variant.ENHANCEMENT: "ENH",
    Variant.STORY: "STORY",
}

# Key under which the model returns its record list
RECORD_LIST_KEY = {
    Variant.ENHANCEMENT: "enhancements",
    Variant.STORY: "stories",
}

ISSUE_TYPE = {
    Variant.ENHANCEMENT: "Enhancement",
    Variant.STORY: "Story",
}

ISSUE_LINK_TYPE = "Relates"
COMMENT_TIME_FORMAT = "%d/%m/%Y %H:%M:%S"
