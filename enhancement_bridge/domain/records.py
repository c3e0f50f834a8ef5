"""
Ticket and generated-record domain models.

Both families are tagged unions on ``variant`` so every consumer can switch
on the tag instead of sniffing for fields.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from enhancement_bridge.core.constants import (
    NO_ACCEPTANCE_CRITERIA,
    NO_CHECK_POINTS,
    NO_DESCRIPTION,
    NO_I_WANT,
    NO_SO_THAT,
    NO_SUMMARY,
    NO_USER_STORY_SUMMARY,
    NO_VALIDATIONS,
    Variant,
)

# Keys that only ever appear on story records
_STORY_KEYS = ("story_id", "user_story_summary", "check_points", "validations")


def _drop_blank(data: Any) -> Any:
    """Remove None/blank values so field placeholders apply."""
    if not isinstance(data, dict):
        return data
    return {
        key: value
        for key, value in data.items()
        if value is not None and not (isinstance(value, str) and not value.strip())
    }


def _first_key(*candidates: Optional[str]) -> str:
    """First non-blank issue key, trimmed."""
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return ""


# =============================================================================
# Source tickets
# =============================================================================


class _TicketBase(BaseModel):
    """Fields shared by both ticket families."""

    model_config = ConfigDict(populate_by_name=True)

    ticket_id: str = Field(..., alias="ticketId")
    summary: str = Field(default=NO_SUMMARY)
    description: str = Field(default=NO_DESCRIPTION)
    images: list[str] = Field(default_factory=list)
    project_key: str = Field(default="", alias="projectKey")

    @model_validator(mode="before")
    @classmethod
    def fill_placeholders(cls, data: Any) -> Any:
        return _drop_blank(data)

    @property
    def has_description(self) -> bool:
        return self.description != NO_DESCRIPTION


class EnhancementTicket(_TicketBase):
    """Normalized enhancement-project ticket."""

    variant: Literal["enhancement"] = "enhancement"
    i_want: str = Field(default=NO_I_WANT)
    so_that: str = Field(default=NO_SO_THAT)
    acceptance_criteria: str = Field(default=NO_ACCEPTANCE_CRITERIA)


class StoryTicket(_TicketBase):
    """Normalized story-project ticket."""

    variant: Literal["story"] = "story"
    user_story_summary: str = Field(default=NO_USER_STORY_SUMMARY)
    check_points: str = Field(default=NO_CHECK_POINTS)
    validations: str = Field(default=NO_VALIDATIONS)


TicketRecord = Annotated[Union[EnhancementTicket, StoryTicket], Field(discriminator="variant")]


# =============================================================================
# Generated records
# =============================================================================


class ErrorRecord(BaseModel):
    """Error-shaped value returned in place of an exception."""

    model_config = ConfigDict(populate_by_name=True)

    variant: Literal["error"] = "error"
    error: str
    raw_response: Optional[str] = Field(default=None, alias="rawResponse")


class EnhancementRecord(BaseModel):
    """AI-produced enhancement candidate."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    variant: Literal["enhancement"] = "enhancement"
    enhancement_id: str = ""
    summary: str = ""
    description: str = ""
    i_want: str = ""
    so_that: str = ""
    acceptance_criteria: str = ""
    jira_ticket: str = Field(default="", alias="jiraTicket")
    ticket_id: Optional[str] = None

    @property
    def record_id(self) -> str:
        return self.enhancement_id

    @property
    def parent_key(self) -> str:
        return _first_key(self.ticket_id, self.jira_ticket)


class StoryRecord(BaseModel):
    """AI-produced user story candidate."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    variant: Literal["story"] = "story"
    story_id: str = ""
    summary: str = ""
    user_story_summary: str = ""
    check_points: str = ""
    description: str = ""
    validations: str = ""
    ticket_id: str = ""
    jira_ticket: Optional[str] = Field(default=None, alias="jiraTicket")
    epic_key: Optional[str] = None

    @property
    def record_id(self) -> str:
        return self.story_id

    @property
    def parent_key(self) -> str:
        return _first_key(self.ticket_id, self.jira_ticket, self.epic_key)


GeneratedRecord = Union[EnhancementRecord, StoryRecord]
RecordResult = Union[EnhancementRecord, StoryRecord, ErrorRecord]

_record_adapter: TypeAdapter[RecordResult] = TypeAdapter(
    Annotated[RecordResult, Field(discriminator="variant")]
)


def infer_variant(data: dict[str, Any], default: Variant = Variant.ENHANCEMENT) -> str:
    """Infer the record tag for payloads that arrive without one (e.g. from the UI)."""
    tag = data.get("variant")
    if isinstance(tag, Variant):
        return tag.value
    if tag:
        return str(tag)
    if "error" in data and not any(key in data for key in ("enhancement_id", "story_id")):
        return "error"
    if any(key in data for key in _STORY_KEYS):
        return Variant.STORY.value
    if "enhancement_id" in data or "jiraTicket" in data or "i_want" in data:
        return Variant.ENHANCEMENT.value
    return Variant(default).value


def parse_record(data: dict[str, Any], default: Variant = Variant.ENHANCEMENT) -> RecordResult:
    """Validate a raw record dict into its tagged model."""
    payload = dict(data)
    payload["variant"] = infer_variant(payload, default)
    return _record_adapter.validate_python(payload)


def dump_record(record: RecordResult) -> dict[str, Any]:
    """Serialize a record with its wire field names."""
    return record.model_dump(by_alias=True, exclude_none=True)


def dump_records(records: list[RecordResult]) -> list[dict[str, Any]]:
    return [dump_record(record) for record in records]
