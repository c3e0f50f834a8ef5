"""
Tests for importing records into JIRA.
"""

from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest

from enhancement_bridge.core.config import WorkflowSettings
from enhancement_bridge.core.constants import NO_CHECK_POINTS, NO_SUMMARY, Variant
from enhancement_bridge.core.exceptions import JiraError
from enhancement_bridge.domain.records import EnhancementRecord, ErrorRecord, StoryRecord
from enhancement_bridge.jira.importer import RecordImporter

FIXED_NOW = datetime(2024, 3, 5, 14, 7, 9)


def enhancement(n: int) -> EnhancementRecord:
    return EnhancementRecord(
        enhancement_id=f"RSOFT-1-ENH-{n}",
        summary=f"Enhancement {n}",
        description="Details",
        i_want="I want",
        so_that="So that",
        acceptance_criteria="Criteria",
        jira_ticket="RSOFT-1",
    )


class TestRecordImporter:
    """Tests for RecordImporter."""

    @pytest.fixture
    def importer(self, jira_clients: dict[Variant, Any], workflow: WorkflowSettings) -> RecordImporter:
        return RecordImporter(jira_clients, workflow, clock=lambda: FIXED_NOW)

    @pytest.mark.asyncio
    async def test_create_failure_skips_record(self, importer: RecordImporter, mock_jira_client: AsyncMock):
        mock_jira_client.create_issue.side_effect = ["RSOFT-100", JiraError("HTTP 400", status_code=400)]

        created = await importer.import_records([enhancement(1), enhancement(2)], "RSOFT")

        assert created == ["RSOFT-100"]
        assert mock_jira_client.create_issue.await_count == 2
        mock_jira_client.link_issues.assert_awaited_once_with("RSOFT-100", "RSOFT-1", "Relates")
        mock_jira_client.add_adf_comment.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_link_and_comment_failures_keep_issue(self, importer: RecordImporter, mock_jira_client: AsyncMock):
        mock_jira_client.create_issue.return_value = "RSOFT-101"
        mock_jira_client.link_issues.side_effect = JiraError("HTTP 404", status_code=404)
        mock_jira_client.add_adf_comment.side_effect = JiraError("HTTP 500", status_code=500)

        created = await importer.import_records([enhancement(1)], "RSOFT")

        assert created == ["RSOFT-101"]

    @pytest.mark.asyncio
    async def test_confirmation_comment_text(self, importer: RecordImporter, mock_jira_client: AsyncMock):
        mock_jira_client.create_issue.return_value = "RSOFT-102"

        await importer.import_records([enhancement(1)], "RSOFT")

        issue_key, text = mock_jira_client.add_adf_comment.call_args.args
        assert issue_key == "RSOFT-102"
        assert "05/03/2024 14:07:09" in text
        assert "Jira Ticket ID: RSOFT-102" in text

    @pytest.mark.asyncio
    async def test_story_uses_story_site_and_fields(
        self,
        importer: RecordImporter,
        mock_jira_client: AsyncMock,
        mock_story_jira_client: AsyncMock,
        workflow: WorkflowSettings,
    ):
        mock_story_jira_client.create_issue.return_value = "RSOFTBMS-50"
        story = StoryRecord(story_id="S-1", summary="  ", user_story_summary="Raise a bill", ticket_id="RSOFTBMS-7")

        created = await importer.import_records([story], "RSOFTBMS")

        assert created == ["RSOFTBMS-50"]
        mock_jira_client.create_issue.assert_not_called()
        fields = mock_story_jira_client.create_issue.call_args.args[0]
        assert fields["issuetype"] == {"name": "Story"}
        assert fields["summary"] == NO_SUMMARY
        check_points = fields[workflow.check_points_field]["content"][0]["content"][0]["text"]
        assert check_points == NO_CHECK_POINTS
        mock_story_jira_client.link_issues.assert_awaited_once_with("RSOFTBMS-50", "RSOFTBMS-7", "Relates")

    @pytest.mark.asyncio
    async def test_error_records_skipped(self, importer: RecordImporter, mock_jira_client: AsyncMock):
        created = await importer.import_records([ErrorRecord(error="boom")], "RSOFT")

        assert created == []
        mock_jira_client.create_issue.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_parent_no_link(self, importer: RecordImporter, mock_jira_client: AsyncMock):
        mock_jira_client.create_issue.return_value = "RSOFT-103"
        record = enhancement(1).model_copy(update={"jira_ticket": ""})

        await importer.import_records([record], "RSOFT")

        mock_jira_client.link_issues.assert_not_called()

    @pytest.mark.asyncio
    async def test_enhancement_ticket_id_takes_precedence(self, importer: RecordImporter, mock_jira_client: AsyncMock):
        mock_jira_client.create_issue.return_value = "RSOFT-104"
        record = enhancement(1).model_copy(update={"ticket_id": " RSOFT-9 "})

        await importer.import_records([record], "RSOFT")

        mock_jira_client.link_issues.assert_awaited_once_with("RSOFT-104", "RSOFT-9", "Relates")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "parent_fields",
        [
            {"ticket_id": "RSOFTBMS-7"},
            {"jiraTicket": " RSOFTBMS-7 "},
            {"epic_key": "RSOFTBMS-7"},
            {"ticket_id": "RSOFTBMS-7", "jiraTicket": "RSOFTBMS-8", "epic_key": "RSOFTBMS-9"},
        ],
    )
    async def test_story_parent_key_sources(
        self,
        importer: RecordImporter,
        mock_story_jira_client: AsyncMock,
        parent_fields: dict[str, str],
    ):
        mock_story_jira_client.create_issue.return_value = "RSOFTBMS-51"
        story = StoryRecord.model_validate({"story_id": "S-1", "summary": "Bill", **parent_fields})

        await importer.import_records([story], "RSOFTBMS")

        mock_story_jira_client.link_issues.assert_awaited_once_with("RSOFTBMS-51", "RSOFTBMS-7", "Relates")

    @pytest.mark.asyncio
    async def test_create_without_key_keeps_earlier_ids(self, importer: RecordImporter, mock_jira_client: AsyncMock):
        mock_jira_client.create_issue.side_effect = [
            "RSOFT-105",
            JiraError("Issue created without a key in the response"),
            "RSOFT-106",
        ]

        created = await importer.import_records([enhancement(1), enhancement(2), enhancement(3)], "RSOFT")

        assert created == ["RSOFT-105", "RSOFT-106"]
