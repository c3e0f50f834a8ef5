"""
Record generator: prompts the model with a source ticket and reconciles
its answer into GeneratedRecords.
"""

import json
from typing import Any, Optional, Union

from enhancement_bridge.ai.llm_client import LLMClient
from enhancement_bridge.ai.parsing import RawRecords, parse_records
from enhancement_bridge.ai.prompts import TEMPLATE_FIELDS, load_template, render_prompt
from enhancement_bridge.core.config import WorkflowSettings
from enhancement_bridge.core.constants import RECORD_ID_SUFFIX, RECORD_LIST_KEY, Variant
from enhancement_bridge.core.exceptions import LLMError
from enhancement_bridge.core.logging import get_logger
from enhancement_bridge.domain.records import (
    EnhancementRecord,
    EnhancementTicket,
    ErrorRecord,
    GeneratedRecord,
    RecordResult,
    StoryRecord,
    StoryTicket,
)

logger = get_logger(__name__)

Ticket = Union[EnhancementTicket, StoryTicket]


def _text(value: Any) -> str:
    """Coerce a model-supplied value into trimmed text ("" when absent)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        return "\n".join(part for part in (_text(item) for item in value) if part)
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


class RecordGenerator:
    """
    Generates enhancement or story records for a ticket.

    Expected failures (missing template, empty model answer, unparsable
    output, model API error) come back as a one-element ErrorRecord list.
    """

    def __init__(self, llm_client: LLMClient, workflow: WorkflowSettings) -> None:
        self.llm_client = llm_client
        self.workflow = workflow

    def _template_path(self, variant: Variant) -> Optional[str]:
        if variant == Variant.STORY:
            return self.workflow.story_prompt_path
        return self.workflow.enhancement_prompt_path

    def build_prompt(self, variant: Variant, ticket: Ticket, custom_prompt: str = "") -> str:
        """
        Render the variant template for a ticket.

        Raises:
            FileNotFoundError: If a configured template override is missing
        """
        template = load_template(variant, self._template_path(variant))
        values = {name: getattr(ticket, name, None) for name in TEMPLATE_FIELDS[variant]}
        return render_prompt(template, variant, ticket.ticket_id, values, custom_prompt)

    async def generate(
        self,
        variant: Variant,
        ticket: Ticket,
        custom_prompt: str = "",
    ) -> list[RecordResult]:
        """
        Generate records for a ticket.

        Args:
            variant: Record family to produce
            ticket: Normalized source ticket of the same family
            custom_prompt: Extra reviewer instructions

        Returns:
            Reconciled records in model order, or a single ErrorRecord
        """
        if ticket.variant != variant:
            raise ValueError(f"Cannot generate {variant.value} records from a {ticket.variant} ticket")

        try:
            prompt = self.build_prompt(variant, ticket, custom_prompt)
        except FileNotFoundError as e:
            logger.error("Prompt template missing", path=str(e))
            return [ErrorRecord(error=f"'{e}' file is missing.")]

        try:
            raw_text = await self.llm_client.generate_response(prompt)
        except LLMError as e:
            logger.error("Model call failed", ticket_id=ticket.ticket_id, error=e.message)
            return [ErrorRecord(error=e.message)]

        if raw_text is None:
            return [ErrorRecord(error="AI response is empty or invalid.")]

        logger.debug("Raw model output", ticket_id=ticket.ticket_id, output=raw_text[:2000])

        parsed = parse_records(raw_text)
        if not parsed:
            return [
                ErrorRecord(
                    error=f"No valid {RECORD_LIST_KEY[variant]} found in AI response.",
                    raw_response=raw_text,
                )
            ]

        records = self.reconcile(variant, ticket, parsed)
        logger.info("Records generated", ticket_id=ticket.ticket_id, variant=variant.value, count=len(records))
        return records

    def reconcile(self, variant: Variant, ticket: Ticket, raw_records: RawRecords) -> list[GeneratedRecord]:
        """Fill gaps in model output from the source ticket and synthesize ids."""
        suffix = RECORD_ID_SUFFIX[variant]
        records: list[GeneratedRecord] = []

        for index, raw in enumerate(raw_records, start=1):
            fallback_id = f"{ticket.ticket_id}-{suffix}-{index}"
            if isinstance(ticket, StoryTicket):
                records.append(
                    StoryRecord(
                        story_id=_text(raw.get("story_id")) or fallback_id,
                        summary=_text(raw.get("summary")) or ticket.summary,
                        user_story_summary=_text(raw.get("user_story_summary")) or ticket.user_story_summary,
                        check_points=_text(raw.get("check_points")) or ticket.check_points,
                        description=_text(raw.get("description")) or ticket.description,
                        validations=_text(raw.get("validations")) or ticket.validations,
                        ticket_id=ticket.ticket_id,
                    )
                )
            else:
                records.append(
                    EnhancementRecord(
                        enhancement_id=_text(raw.get("enhancement_id")) or fallback_id,
                        summary=_text(raw.get("summary")) or ticket.summary,
                        description=_text(raw.get("description")) or ticket.description,
                        i_want=_text(raw.get("i_want")) or ticket.i_want,
                        so_that=_text(raw.get("so_that")) or ticket.so_that,
                        acceptance_criteria=_text(raw.get("acceptance_criteria")) or ticket.acceptance_criteria,
                        jira_ticket=ticket.ticket_id,
                    )
                )

        return records
