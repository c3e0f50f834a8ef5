"""
Tests for webhook change detection.
"""

from typing import Any, Optional

import pytest

from enhancement_bridge.core.config import WorkflowSettings
from enhancement_bridge.core.constants import Variant
from enhancement_bridge.repositories.record_store import ChangeTracker
from enhancement_bridge.services.change_detector import (
    ChangeDetector,
    EnhancementTriggerPolicy,
    StoryTriggerPolicy,
    resolve_ticket,
)


def webhook(
    key: str,
    items: list[dict[str, Any]],
    assignee: Optional[str] = None,
    project: Optional[str] = None,
) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if project:
        fields["project"] = {"key": project}
    if assignee is not None:
        fields["assignee"] = {"displayName": assignee}
    return {"issue": {"key": key, "fields": fields}, "changelog": {"items": items}}


def assignee_item(old: str, new: str) -> dict[str, str]:
    return {"field": "assignee", "fromString": old, "toString": new}


def field_item(old: str, new: str, field_id: str = "customfield_10040") -> dict[str, str]:
    return {"field": "I Want", "fieldId": field_id, "fromString": old, "toString": new}


class TestResolveTicket:
    def test_project_from_fields(self):
        assert resolve_ticket(webhook("RSOFT-1", [], project="rsoft")) == ("RSOFT-1", "RSOFT")

    def test_project_from_key_prefix(self):
        assert resolve_ticket(webhook("RSOFTBMS-9", [])) == ("RSOFTBMS-9", "RSOFTBMS")


class TestEnhancementTriggerPolicy:
    """Tests for the default project policy."""

    @pytest.fixture
    def policy(self, change_tracker: ChangeTracker, workflow: WorkflowSettings) -> EnhancementTriggerPolicy:
        return EnhancementTriggerPolicy(change_tracker, workflow)

    @pytest.mark.asyncio
    async def test_assignee_change_to_trigger_fires(
        self, policy: EnhancementTriggerPolicy, change_tracker: ChangeTracker
    ):
        reason = await policy.evaluate("RSOFT-1", webhook("RSOFT-1", [assignee_item("", "TeamBA")]))

        assert reason == "assignee"
        assert await change_tracker.assignees.get("RSOFT-1") == "TeamBA"

    @pytest.mark.asyncio
    async def test_unchanged_assignee_does_not_fire(self, policy: EnhancementTriggerPolicy):
        body = webhook("RSOFT-1", [assignee_item("TeamBA", "TeamBA")])
        assert await policy.evaluate("RSOFT-1", body) is None

    @pytest.mark.asyncio
    async def test_repeat_event_does_not_fire_twice(self, policy: EnhancementTriggerPolicy):
        body = webhook("RSOFT-1", [assignee_item("", "TeamBA")])

        assert await policy.evaluate("RSOFT-1", body) == "assignee"
        assert await policy.evaluate("RSOFT-1", body) is None

    @pytest.mark.asyncio
    async def test_other_assignee_updates_tracker_only(
        self, policy: EnhancementTriggerPolicy, change_tracker: ChangeTracker
    ):
        body = webhook("RSOFT-1", [assignee_item("TeamBA", "Someone")])

        assert await policy.evaluate("RSOFT-1", body) is None
        assert await change_tracker.assignees.get("RSOFT-1") == "Someone"

    @pytest.mark.asyncio
    async def test_tracked_field_change_with_trigger_assignee(
        self, policy: EnhancementTriggerPolicy, change_tracker: ChangeTracker
    ):
        body = webhook("RSOFT-1", [field_item("old text", "new text")], assignee="TeamBA")

        assert await policy.evaluate("RSOFT-1", body) == "customfield_10040"
        assert await change_tracker.custom_fields.get("RSOFT-1") == "new text"

    @pytest.mark.asyncio
    async def test_tracked_field_change_with_other_assignee(self, policy: EnhancementTriggerPolicy):
        body = webhook("RSOFT-1", [field_item("old text", "new text")], assignee="Someone")
        assert await policy.evaluate("RSOFT-1", body) is None

    @pytest.mark.asyncio
    async def test_untracked_field_ignored(self, policy: EnhancementTriggerPolicy):
        body = webhook("RSOFT-1", [field_item("a", "b", field_id="customfield_99999")], assignee="TeamBA")
        assert await policy.evaluate("RSOFT-1", body) is None


class TestStoryTriggerPolicy:
    """Tests for the story project policy."""

    @pytest.fixture
    def policy(self, change_tracker: ChangeTracker, workflow: WorkflowSettings) -> StoryTriggerPolicy:
        return StoryTriggerPolicy(change_tracker, workflow)

    @pytest.mark.asyncio
    async def test_assignment_to_analyst_fires(self, policy: StoryTriggerPolicy):
        body = webhook("RSOFTBMS-7", [assignee_item("", "Team Analyst")])
        assert await policy.evaluate("RSOFTBMS-7", body) == "assignee"

    @pytest.mark.asyncio
    async def test_same_assignee_does_not_fire(self, policy: StoryTriggerPolicy):
        body = webhook("RSOFTBMS-7", [assignee_item("Team Analyst", "Team Analyst")])
        assert await policy.evaluate("RSOFTBMS-7", body) is None

    @pytest.mark.asyncio
    async def test_enhancement_trigger_identity_ignored(self, policy: StoryTriggerPolicy):
        body = webhook("RSOFTBMS-7", [assignee_item("", "TeamBA")])
        assert await policy.evaluate("RSOFTBMS-7", body) is None


class TestChangeDetector:
    """Tests for project dispatch."""

    @pytest.fixture
    def detector(self, change_tracker: ChangeTracker, workflow: WorkflowSettings) -> ChangeDetector:
        return ChangeDetector(change_tracker, workflow)

    @pytest.mark.asyncio
    async def test_enhancement_project(self, detector: ChangeDetector):
        decision = await detector.evaluate(webhook("RSOFT-1", [assignee_item("", "TeamBA")]))

        assert decision.fire
        assert decision.variant == Variant.ENHANCEMENT
        assert decision.ticket_id == "RSOFT-1"

    @pytest.mark.asyncio
    async def test_story_project(self, detector: ChangeDetector):
        decision = await detector.evaluate(
            webhook("RSOFTBMS-7", [assignee_item("", "Team Analyst")], project="RSOFTBMS")
        )

        assert decision.fire
        assert decision.variant == Variant.STORY

    @pytest.mark.asyncio
    async def test_unknown_project(self, detector: ChangeDetector):
        decision = await detector.evaluate(webhook("OTHER-3", [assignee_item("", "TeamBA")]))

        assert not decision.fire
        assert decision.variant is None

    @pytest.mark.asyncio
    async def test_missing_changelog(self, detector: ChangeDetector):
        decision = await detector.evaluate({"issue": {"key": "RSOFT-1", "fields": {}}})
        assert not decision.fire
