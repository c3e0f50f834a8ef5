"""
Ticket fetcher: loads a JIRA issue and normalizes it into a TicketRecord.
"""

import json
from typing import Any, Optional, Union

from enhancement_bridge.core.config import WorkflowSettings
from enhancement_bridge.core.constants import Variant
from enhancement_bridge.core.exceptions import JiraError
from enhancement_bridge.core.logging import get_logger
from enhancement_bridge.domain.records import EnhancementTicket, ErrorRecord, StoryTicket
from enhancement_bridge.jira.adf import field_text
from enhancement_bridge.jira.client import JiraClient

logger = get_logger(__name__)

FetchResult = Union[EnhancementTicket, StoryTicket, ErrorRecord]


def resolve_variant(
    ticket_id: str,
    project_key: Optional[str],
    workflow: WorkflowSettings,
) -> Variant:
    """Pick the ticket family from an explicit project key or the ticket id prefix."""
    story_key = workflow.story_project_key.upper()
    if project_key and project_key.upper() == story_key:
        return Variant.STORY
    if ticket_id.upper().startswith(f"{story_key}-"):
        return Variant.STORY
    return Variant.ENHANCEMENT


class TicketFetcher:
    """
    Fetches tickets from the JIRA site that owns their project.
    """

    def __init__(
        self,
        clients: dict[Variant, JiraClient],
        workflow: WorkflowSettings,
    ) -> None:
        """
        Args:
            clients: JIRA client per ticket family
            workflow: Project keys and custom field ids
        """
        self.clients = clients
        self.workflow = workflow

    async def fetch_ticket(
        self,
        ticket_id: str,
        project_key: Optional[str] = None,
    ) -> FetchResult:
        """
        Fetch and normalize a ticket.

        Never raises for API failures; returns an ErrorRecord instead.
        """
        variant = resolve_variant(ticket_id, project_key, self.workflow)
        client = self.clients[variant]

        try:
            issue = await client.get_issue(ticket_id)
        except JiraError as e:
            body = e.response_body
            if body is None:
                message = e.message
            elif isinstance(body, str):
                message = body
            else:
                message = json.dumps(body, indent=2)
            logger.warning("Ticket fetch failed", ticket_id=ticket_id, error=e.message)
            return ErrorRecord(error=message)

        fields: dict[str, Any] = issue.get("fields") or {}
        if variant == Variant.STORY:
            return self._to_story(issue, fields)
        return self._to_enhancement(issue, fields)

    def _common(self, issue: dict[str, Any], fields: dict[str, Any]) -> dict[str, Any]:
        return {
            "ticketId": issue.get("key", ""),
            "summary": fields.get("summary"),
            "description": field_text(fields.get("description")),
            "images": [
                attachment["content"]
                for attachment in fields.get("attachment") or []
                if attachment.get("content")
            ],
        }

    def _to_enhancement(self, issue: dict[str, Any], fields: dict[str, Any]) -> EnhancementTicket:
        wf = self.workflow
        return EnhancementTicket(
            **self._common(issue, fields),
            projectKey=wf.enhancement_project_key,
            i_want=field_text(fields.get(wf.i_want_field), formatted=True),
            so_that=field_text(fields.get(wf.so_that_field)),
            acceptance_criteria=field_text(fields.get(wf.acceptance_criteria_field), formatted=True),
        )

    def _to_story(self, issue: dict[str, Any], fields: dict[str, Any]) -> StoryTicket:
        wf = self.workflow
        return StoryTicket(
            **self._common(issue, fields),
            projectKey=wf.story_project_key,
            user_story_summary=field_text(fields.get(wf.user_story_summary_field)),
            check_points=field_text(fields.get(wf.check_points_field)),
            validations=field_text(fields.get(wf.validations_field)),
        )
