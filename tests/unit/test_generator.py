"""
Tests for the record generator.
"""

from unittest.mock import AsyncMock

import pytest

from enhancement_bridge.core.config import WorkflowSettings
from enhancement_bridge.core.constants import Variant
from enhancement_bridge.core.exceptions import LLMError
from enhancement_bridge.domain.records import (
    EnhancementRecord,
    EnhancementTicket,
    ErrorRecord,
    StoryRecord,
    StoryTicket,
)
from enhancement_bridge.services.generator import RecordGenerator


class TestRecordGenerator:
    """Tests for RecordGenerator."""

    @pytest.fixture
    def generator(self, mock_llm_client: AsyncMock, workflow: WorkflowSettings) -> RecordGenerator:
        return RecordGenerator(mock_llm_client, workflow)

    @pytest.mark.asyncio
    async def test_generate_enhancements(
        self,
        generator: RecordGenerator,
        mock_llm_client: AsyncMock,
        enhancement_ticket: EnhancementTicket,
    ):
        records = await generator.generate(Variant.ENHANCEMENT, enhancement_ticket)

        assert len(records) == 1
        record = records[0]
        assert isinstance(record, EnhancementRecord)
        assert record.enhancement_id == "RSOFT-1-ENH-1"
        assert record.summary == "Export report as CSV"
        assert record.jira_ticket == "RSOFT-1"

        prompt = mock_llm_client.generate_response.call_args.args[0]
        assert "to export reports" in prompt
        assert "{{" not in prompt

    @pytest.mark.asyncio
    async def test_ids_synthesized_and_gaps_filled(
        self,
        generator: RecordGenerator,
        mock_llm_client: AsyncMock,
        enhancement_ticket: EnhancementTicket,
    ):
        mock_llm_client.generate_response.return_value = (
            '{"enhancements": [{"summary": "  First  "}, {"summary": "", "i_want": ["a", "b"]}]}'
        )

        records = await generator.generate(Variant.ENHANCEMENT, enhancement_ticket)

        assert [r.enhancement_id for r in records] == ["RSOFT-1-ENH-1", "RSOFT-1-ENH-2"]
        assert all(r.record_id for r in records)
        assert records[0].summary == "First"
        assert records[0].so_that == enhancement_ticket.so_that
        assert records[1].summary == enhancement_ticket.summary
        assert records[1].i_want == "a\nb"

    @pytest.mark.asyncio
    async def test_generate_stories(
        self,
        generator: RecordGenerator,
        mock_llm_client: AsyncMock,
        story_ticket: StoryTicket,
    ):
        mock_llm_client.generate_response.return_value = (
            '{"stories": [{"summary": "Raise bill", "check_points": "Totals"}]}'
        )

        records = await generator.generate(Variant.STORY, story_ticket)

        assert len(records) == 1
        story = records[0]
        assert isinstance(story, StoryRecord)
        assert story.story_id == "RSOFTBMS-7-STORY-1"
        assert story.ticket_id == "RSOFTBMS-7"
        assert story.validations == story_ticket.validations

        prompt = mock_llm_client.generate_response.call_args.args[0]
        assert '{"stories":' in prompt

    @pytest.mark.asyncio
    async def test_invalid_json_returns_error_record(
        self,
        generator: RecordGenerator,
        mock_llm_client: AsyncMock,
        enhancement_ticket: EnhancementTicket,
    ):
        mock_llm_client.generate_response.return_value = "```json\n{not valid}\n```"

        records = await generator.generate(Variant.ENHANCEMENT, enhancement_ticket)

        assert len(records) == 1
        assert isinstance(records[0], ErrorRecord)
        assert records[0].error
        assert "not valid" in records[0].raw_response

    @pytest.mark.asyncio
    async def test_empty_response(
        self,
        generator: RecordGenerator,
        mock_llm_client: AsyncMock,
        enhancement_ticket: EnhancementTicket,
    ):
        mock_llm_client.generate_response.return_value = None

        records = await generator.generate(Variant.ENHANCEMENT, enhancement_ticket)

        assert records == [ErrorRecord(error="AI response is empty or invalid.")]

    @pytest.mark.asyncio
    async def test_model_error(
        self,
        generator: RecordGenerator,
        mock_llm_client: AsyncMock,
        enhancement_ticket: EnhancementTicket,
    ):
        mock_llm_client.generate_response.side_effect = LLMError("quota exceeded")

        records = await generator.generate(Variant.ENHANCEMENT, enhancement_ticket)

        assert isinstance(records[0], ErrorRecord)
        assert "quota exceeded" in records[0].error

    @pytest.mark.asyncio
    async def test_missing_template_file(
        self,
        mock_llm_client: AsyncMock,
        enhancement_ticket: EnhancementTicket,
        tmp_path,
    ):
        missing = str(tmp_path / "prompt.txt")
        generator = RecordGenerator(
            mock_llm_client,
            WorkflowSettings(enhancement_prompt_path=missing),
        )

        records = await generator.generate(Variant.ENHANCEMENT, enhancement_ticket)

        assert records == [ErrorRecord(error=f"'{missing}' file is missing.")]
        mock_llm_client.generate_response.assert_not_called()

    @pytest.mark.asyncio
    async def test_template_override(
        self,
        mock_llm_client: AsyncMock,
        enhancement_ticket: EnhancementTicket,
        tmp_path,
    ):
        template = tmp_path / "prompt.txt"
        template.write_text("Ticket {{ticketId}}: {{description}}", encoding="utf-8")
        generator = RecordGenerator(
            mock_llm_client,
            WorkflowSettings(enhancement_prompt_path=str(template)),
        )

        await generator.generate(Variant.ENHANCEMENT, enhancement_ticket, custom_prompt="Be brief")

        prompt = mock_llm_client.generate_response.call_args.args[0]
        assert prompt.startswith("Ticket RSOFT-1: Reports need to be shareable.")
        assert prompt.endswith("Be brief")
