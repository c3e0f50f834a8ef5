"""
Importer: creates JIRA issues from approved records, links them to their
parent ticket and confirms each with a comment.
"""

from datetime import datetime
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from enhancement_bridge.core.config import WorkflowSettings
from enhancement_bridge.core.constants import (
    COMMENT_TIME_FORMAT,
    ISSUE_LINK_TYPE,
    ISSUE_TYPE,
    NO_ACCEPTANCE_CRITERIA,
    NO_CHECK_POINTS,
    NO_I_WANT,
    NO_SO_THAT,
    NO_SUMMARY,
    NO_VALIDATIONS,
    Variant,
)
from enhancement_bridge.core.exceptions import JiraError
from enhancement_bridge.core.logging import get_logger
from enhancement_bridge.domain.records import (
    EnhancementRecord,
    ErrorRecord,
    GeneratedRecord,
    RecordResult,
    StoryRecord,
)
from enhancement_bridge.jira.adf import plain_text_doc
from enhancement_bridge.jira.client import JiraClient

logger = get_logger(__name__)


def _text_or(value: Optional[str], fallback: str) -> str:
    if value and value.strip():
        return value.strip()
    return fallback


class RecordImporter:
    """
    Commits generated records to JIRA.
    Each record is processed on its own; one failure never aborts the rest.
    """

    def __init__(
        self,
        clients: dict[Variant, JiraClient],
        workflow: WorkflowSettings,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.clients = clients
        self.workflow = workflow
        self._clock = clock or (lambda: datetime.now(ZoneInfo(workflow.comment_timezone)))

    def build_fields(self, record: GeneratedRecord, project_key: str) -> dict[str, Any]:
        """Map a record onto the create-issue field set of its project."""
        wf = self.workflow
        if isinstance(record, StoryRecord):
            return {
                "project": {"key": project_key},
                "summary": _text_or(record.summary, NO_SUMMARY),
                "issuetype": {"name": ISSUE_TYPE[Variant.STORY]},
                "description": plain_text_doc(_text_or(record.description, "No description provided")),
                wf.user_story_summary_field: plain_text_doc(
                    _text_or(record.user_story_summary, "No user story summary provided")
                ),
                wf.check_points_field: plain_text_doc(_text_or(record.check_points, NO_CHECK_POINTS)),
                wf.validations_field: plain_text_doc(_text_or(record.validations, NO_VALIDATIONS)),
            }
        if isinstance(record, EnhancementRecord):
            return {
                "project": {"key": project_key},
                "summary": _text_or(record.summary, NO_SUMMARY),
                "issuetype": {"name": ISSUE_TYPE[Variant.ENHANCEMENT]},
                "description": plain_text_doc(_text_or(record.description, "No description provided")),
                wf.i_want_field: plain_text_doc(_text_or(record.i_want, NO_I_WANT)),
                wf.so_that_field: plain_text_doc(_text_or(record.so_that, NO_SO_THAT)),
                wf.acceptance_criteria_field: plain_text_doc(_text_or(record.acceptance_criteria, NO_ACCEPTANCE_CRITERIA)),
            }
        raise TypeError(f"Unsupported record type: {type(record).__name__}")

    async def import_records(
        self,
        records: list[RecordResult],
        project_key: str,
    ) -> list[str]:
        """
        Create one issue per record.

        Args:
            records: Approved records
            project_key: Target JIRA project key

        Returns:
            Keys of the issues that were created, in record order
        """
        created: list[str] = []

        for record in records:
            if isinstance(record, ErrorRecord):
                logger.warning("Skipping error record on import", error=record.error)
                continue

            variant = Variant(record.variant)
            client = self.clients[variant]
            fields = self.build_fields(record, project_key)

            logger.info(
                "Creating issue",
                variant=variant.value,
                summary=fields["summary"],
                project_key=project_key,
            )
            try:
                issue_key = await client.create_issue(fields)
            except JiraError as e:
                logger.error(
                    "Issue creation failed",
                    record_id=record.record_id,
                    error=e.message,
                    response_body=e.response_body,
                )
                continue

            created.append(issue_key)
            logger.info("Issue created", issue_key=issue_key, variant=variant.value)

            await self._link_to_parent(client, issue_key, record.parent_key)
            await self._confirm(client, issue_key, variant)

        logger.info("Import finished", created=created)
        return created

    async def _link_to_parent(self, client: JiraClient, issue_key: str, parent_key: str) -> None:
        if not parent_key:
            logger.warning("No parent key to link", issue_key=issue_key)
            return
        try:
            await client.link_issues(issue_key, parent_key, ISSUE_LINK_TYPE)
            logger.info("Linked issue to parent", issue_key=issue_key, parent_key=parent_key)
        except JiraError as e:
            logger.error("Failed to link issue", issue_key=issue_key, parent_key=parent_key, error=e.message)

    async def _confirm(self, client: JiraClient, issue_key: str, variant: Variant) -> None:
        timestamp = self._clock().strftime(COMMENT_TIME_FORMAT)
        text = (
            f"{ISSUE_TYPE[variant]} created successfully from AI generation at {timestamp}\n"
            f"Jira Ticket ID: {issue_key}"
        )
        try:
            await client.add_adf_comment(issue_key, text)
        except JiraError as e:
            logger.error("Failed to add confirmation comment", issue_key=issue_key, error=e.message)
