"""
Change detection for JIRA webhook events.

Each project has its own trigger policy. A policy compares the changelog
against the ChangeTracker and decides whether record generation fires.
"""

from dataclasses import dataclass
from typing import Any, Optional

from enhancement_bridge.core.config import WorkflowSettings
from enhancement_bridge.core.constants import Variant
from enhancement_bridge.core.logging import get_logger
from enhancement_bridge.repositories.record_store import ChangeTracker

logger = get_logger(__name__)

ASSIGNEE_FIELD = "assignee"


@dataclass
class TriggerDecision:
    """Outcome of evaluating one webhook event."""

    fire: bool
    ticket_id: str = ""
    project_key: str = ""
    variant: Optional[Variant] = None
    reason: str = ""


@dataclass
class ChangelogItem:
    field: str
    field_id: str
    old: str
    new: str

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> "ChangelogItem":
        return cls(
            field=item.get("field") or "",
            field_id=item.get("fieldId") or "",
            old=item.get("fromString") or "",
            new=item.get("toString") or "",
        )


def _changelog_items(body: dict[str, Any]) -> list[ChangelogItem]:
    changelog = body.get("changelog") or {}
    return [
        ChangelogItem.from_dict(item)
        for item in changelog.get("items") or []
        if isinstance(item, dict)
    ]


def _find_item(items: list[ChangelogItem], *, field: str = "", field_id: str = "") -> Optional[ChangelogItem]:
    for item in items:
        if field and item.field == field:
            return item
        if field_id and item.field_id == field_id:
            return item
    return None


def resolve_ticket(body: dict[str, Any]) -> tuple[str, str]:
    """Return (ticket id, upper-cased project key) from a webhook body."""
    issue = body.get("issue") or {}
    ticket_id = issue.get("key") or ""
    project = (issue.get("fields") or {}).get("project") or {}
    project_key = project.get("key") or ticket_id.rsplit("-", 1)[0]
    return ticket_id, project_key.upper()


def current_assignee(body: dict[str, Any]) -> str:
    fields = (body.get("issue") or {}).get("fields") or {}
    assignee = fields.get("assignee") or {}
    return assignee.get("displayName") or ""


class EnhancementTriggerPolicy:
    """
    Default project: fires when the ticket is reassigned to the trigger
    identity, or when the tracked custom field changes while the ticket is
    assigned to it.
    """

    variant = Variant.ENHANCEMENT

    def __init__(self, tracker: ChangeTracker, workflow: WorkflowSettings) -> None:
        self.tracker = tracker
        self.trigger = workflow.enhancement_trigger_assignee
        self.field_id = workflow.tracked_field_id

    async def evaluate(self, ticket_id: str, body: dict[str, Any]) -> Optional[str]:
        """Return the firing reason, or None."""
        items = _changelog_items(body)

        assignee_item = _find_item(items, field=ASSIGNEE_FIELD)
        if assignee_item is not None:
            stored = await self.tracker.assignees.get(ticket_id)
            if stored is None:
                stored = assignee_item.old
            if stored != assignee_item.new:
                logger.info("Assignee updated", ticket_id=ticket_id, old=stored, new=assignee_item.new)
                await self.tracker.assignees.set(ticket_id, assignee_item.new)
                if assignee_item.new == self.trigger:
                    return ASSIGNEE_FIELD
            else:
                logger.debug("No meaningful change in assignee", ticket_id=ticket_id, value=stored)

        field_item = _find_item(items, field_id=self.field_id)
        if field_item is not None and field_item.old != field_item.new:
            logger.info("Tracked field updated", ticket_id=ticket_id, field_id=self.field_id)
            await self.tracker.custom_fields.set(ticket_id, field_item.new)
            assignee = current_assignee(body)
            if assignee == self.trigger:
                return self.field_id
            logger.info("Tracked field updated but assignee does not match", ticket_id=ticket_id, assignee=assignee)

        return None


class StoryTriggerPolicy:
    """Story project: fires when the ticket is reassigned to the trigger identity."""

    variant = Variant.STORY

    def __init__(self, tracker: ChangeTracker, workflow: WorkflowSettings) -> None:
        self.tracker = tracker
        self.trigger = workflow.story_trigger_assignee

    async def evaluate(self, ticket_id: str, body: dict[str, Any]) -> Optional[str]:
        item = _find_item(_changelog_items(body), field=ASSIGNEE_FIELD)
        if item is None or item.old == item.new:
            return None

        await self.tracker.assignees.set(ticket_id, item.new)
        logger.info("Assignee updated", ticket_id=ticket_id, old=item.old, new=item.new)
        if item.new == self.trigger:
            return ASSIGNEE_FIELD
        return None


class ChangeDetector:
    """Dispatches webhook events to the policy of their project."""

    def __init__(self, tracker: ChangeTracker, workflow: WorkflowSettings) -> None:
        self.policies = {
            workflow.enhancement_project_key.upper(): EnhancementTriggerPolicy(tracker, workflow),
            workflow.story_project_key.upper(): StoryTriggerPolicy(tracker, workflow),
        }

    async def evaluate(self, body: dict[str, Any]) -> TriggerDecision:
        ticket_id, project_key = resolve_ticket(body)
        if not ticket_id:
            logger.warning("Webhook without issue key")
            return TriggerDecision(fire=False, reason="missing issue key")

        policy = self.policies.get(project_key)
        if policy is None:
            logger.info("Ignoring webhook for untracked project", ticket_id=ticket_id, project_key=project_key)
            return TriggerDecision(fire=False, ticket_id=ticket_id, project_key=project_key)

        reason = await policy.evaluate(ticket_id, body)
        return TriggerDecision(
            fire=reason is not None,
            ticket_id=ticket_id,
            project_key=project_key,
            variant=policy.variant,
            reason=reason or "",
        )
