"""
Bridge pipeline: webhook handling, manual generation, cached reads and
imports, coordinated over the fetcher, generator, store and importer.
"""

from datetime import datetime
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from pydantic import ValidationError as PydanticValidationError

from enhancement_bridge.core.config import WorkflowSettings
from enhancement_bridge.core.constants import COMMENT_TIME_FORMAT, PipelineStage, Variant
from enhancement_bridge.core.exceptions import InvalidRequestError, JiraError, TicketNotFoundError
from enhancement_bridge.core.logging import LogContext, get_logger
from enhancement_bridge.domain.records import (
    EnhancementTicket,
    ErrorRecord,
    RecordResult,
    StoryTicket,
    parse_record,
)
from enhancement_bridge.jira.client import JiraClient
from enhancement_bridge.jira.fetcher import TicketFetcher, resolve_variant
from enhancement_bridge.jira.importer import RecordImporter
from enhancement_bridge.push.broadcaster import StatusBroadcaster
from enhancement_bridge.repositories.record_store import RecordStore
from enhancement_bridge.services.change_detector import ChangeDetector
from enhancement_bridge.services.generator import RecordGenerator

logger = get_logger(__name__)

RECORD_LABEL = {
    Variant.ENHANCEMENT: ("Enhancement", "Enhancements"),
    Variant.STORY: ("Story", "Stories"),
}


class BridgePipeline:
    """
    Runs the ticket-to-records flow for every entry point.
    """

    def __init__(
        self,
        detector: ChangeDetector,
        fetcher: TicketFetcher,
        generator: RecordGenerator,
        store: RecordStore,
        importer: RecordImporter,
        jira_clients: dict[Variant, JiraClient],
        workflow: WorkflowSettings,
        broadcaster: Optional[StatusBroadcaster] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.detector = detector
        self.fetcher = fetcher
        self.generator = generator
        self.store = store
        self.importer = importer
        self.jira_clients = jira_clients
        self.workflow = workflow
        self.broadcaster = broadcaster
        self._clock = clock or (lambda: datetime.now(ZoneInfo(workflow.comment_timezone)))

    async def _progress(self, ticket_id: str, stage: PipelineStage, **data: Any) -> None:
        if self.broadcaster is not None:
            await self.broadcaster.send_progress(ticket_id, stage, **data)

    async def _fail(self, ticket_id: str, error: str) -> None:
        await self._progress(ticket_id, PipelineStage.FAILED, error=error)
        if self.broadcaster is not None:
            await self.broadcaster.send_error(error, ticket_id)

    def viewer_url(self, ticket_id: str, variant: Variant) -> str:
        url = f"{self.workflow.public_base_url.rstrip('/')}/enhancements/{ticket_id}"
        if variant == Variant.STORY:
            url += f"?projectKey={self.workflow.story_project_key}"
        return url

    # =========================================================================
    # Generation
    # =========================================================================

    async def _fetch_source(
        self, ticket_id: str, project_key: Optional[str]
    ) -> EnhancementTicket | StoryTicket:
        """
        Raises:
            TicketNotFoundError: If the ticket cannot be fetched or has no description
        """
        await self._progress(ticket_id, PipelineStage.FETCHING)
        ticket = await self.fetcher.fetch_ticket(ticket_id, project_key)
        if isinstance(ticket, ErrorRecord):
            logger.error("Could not fetch ticket", ticket_id=ticket_id, error=ticket.error)
            raise TicketNotFoundError(ticket_id)
        if not ticket.has_description:
            logger.error("Ticket has no description", ticket_id=ticket_id)
            raise TicketNotFoundError(ticket_id)
        return ticket

    async def generate_for_ticket(
        self,
        ticket_id: str,
        project_key: Optional[str] = None,
        custom_prompt: str = "",
    ) -> list[RecordResult]:
        """
        Fetch, generate and store records for one ticket.

        Raises:
            TicketNotFoundError: If the source ticket is unusable
        """
        with LogContext(ticket_id=ticket_id):
            ticket = await self._fetch_source(ticket_id, project_key)
            variant = Variant(ticket.variant)

            await self._progress(ticket_id, PipelineStage.GENERATING, variant=variant.value)
            records = await self.generator.generate(variant, ticket, custom_prompt)

            await self.store.set(ticket_id, records)
            await self._progress(ticket_id, PipelineStage.STORED, count=len(records))
            return records

    async def generate_for_tickets(
        self,
        ticket_ids: list[str],
        custom_prompts: Optional[dict[str, str]] = None,
        project_key: Optional[str] = None,
    ) -> list[RecordResult]:
        """
        Generate for several tickets, strictly in the given order.

        Unusable tickets and error-shaped results are skipped; error
        results are still stored for their ticket.
        """
        custom_prompts = custom_prompts or {}
        collected: list[RecordResult] = []

        for ticket_id in ticket_ids:
            logger.info("Processing ticket", ticket_id=ticket_id)
            try:
                records = await self.generate_for_ticket(
                    ticket_id, project_key, custom_prompts.get(ticket_id, "")
                )
            except TicketNotFoundError as e:
                logger.warning("Skipping ticket", ticket_id=ticket_id, error=e.message)
                await self._fail(ticket_id, e.message)
                continue

            generated = [record for record in records if not isinstance(record, ErrorRecord)]
            if not generated:
                logger.warning("No records generated", ticket_id=ticket_id)
                continue
            collected.extend(generated)

        return collected

    async def get_records(
        self,
        ticket_id: str,
        force: bool = False,
        project_key: Optional[str] = None,
    ) -> list[RecordResult]:
        """Serve stored records, regenerating when forced or absent."""
        if await self.store.should_serve_cache(ticket_id, force):
            logger.debug("Serving stored records", ticket_id=ticket_id)
            return await self.store.get(ticket_id) or []
        return await self.generate_for_ticket(ticket_id, project_key)

    # =========================================================================
    # Webhook
    # =========================================================================

    async def handle_webhook(self, body: dict[str, Any]) -> Optional[dict[str, str]]:
        """
        Evaluate a JIRA webhook and run generation when it fires.

        Returns:
            ``{message, url}`` when generation ran, None for no-op events

        Raises:
            TicketNotFoundError: If the triggering ticket is unusable
        """
        decision = await self.detector.evaluate(body)
        if not decision.fire or decision.variant is None:
            logger.info("No relevant updates", ticket_id=decision.ticket_id)
            return None

        ticket_id = decision.ticket_id
        variant = decision.variant
        logger.info("Generation triggered", ticket_id=ticket_id, variant=variant.value, reason=decision.reason)
        await self._progress(ticket_id, PipelineStage.TRIGGERED, reason=decision.reason)

        try:
            records = await self.generate_for_ticket(ticket_id, decision.project_key)
        except TicketNotFoundError as e:
            await self._fail(ticket_id, e.message)
            raise

        url = self.viewer_url(ticket_id, variant)
        generated = [record for record in records if not isinstance(record, ErrorRecord)]
        error: Optional[str] = None
        if not generated:
            error = next((r.error for r in records if isinstance(r, ErrorRecord)), "No records generated.")
            await self._fail(ticket_id, error)
        await self._post_confirmation(ticket_id, variant, url, len(generated), error)

        singular, _ = RECORD_LABEL[variant]
        message = f"{singular} generation completed."
        if self.broadcaster is not None:
            await self.broadcaster.send_status("completed", message)
        return {"message": message, "url": url}

    def confirmation_comment(self, variant: Variant, url: str, count: int, error: Optional[str] = None) -> str:
        """JIRA wiki-markup comment announcing generated records, or why none were."""
        _, plural = RECORD_LABEL[variant]
        timestamp = self._clock().strftime(COMMENT_TIME_FORMAT)
        if error is not None:
            return (
                f"*__{plural} Generation Failed__*\n\n"
                f"*Time:* *{timestamp}*\n"
                f"*Reason:* {error}\n\n"
                f"[*Click here to View Details*|{url}]\n"
            )
        return (
            f"*__{plural} Generated Successfully__*\n\n"
            f"*Time:* *{timestamp}*\n"
            f"*Total {plural}:* *{count}*\n\n"
            f"[*Click here to View {plural}*|{url}]\n"
        )

    async def _post_confirmation(
        self,
        ticket_id: str,
        variant: Variant,
        url: str,
        count: int,
        error: Optional[str] = None,
    ) -> None:
        client = self.jira_clients[variant]
        try:
            await client.add_comment(ticket_id, self.confirmation_comment(variant, url, count, error))
        except JiraError as e:
            logger.error("Failed to post confirmation comment", ticket_id=ticket_id, error=e.message)
            return
        logger.info("Confirmation comment posted", ticket_id=ticket_id)
        await self._progress(ticket_id, PipelineStage.COMMENTED, url=url)

    # =========================================================================
    # Import
    # =========================================================================

    def parse_payloads(self, payloads: list[dict[str, Any]], project_key: str) -> list[RecordResult]:
        """Validate UI record payloads, skipping malformed ones."""
        default = resolve_variant("", project_key, self.workflow)
        records: list[RecordResult] = []
        for payload in payloads:
            try:
                records.append(parse_record(payload, default))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed record", error=str(e))
        return records

    async def import_records(self, payloads: list[dict[str, Any]], project_key: Optional[str] = None) -> list[str]:
        """
        Commit approved records and return the created issue keys.

        Raises:
            InvalidRequestError: If no records were provided
        """
        if not payloads:
            raise InvalidRequestError("No enhancements provided.", field="enhancements")
        project_key = project_key or self.workflow.enhancement_project_key
        records = self.parse_payloads(payloads, project_key)

        await self._progress(project_key, PipelineStage.IMPORTING, count=len(records))
        created = await self.importer.import_records(records, project_key)
        await self._progress(project_key, PipelineStage.IMPORTED, created=created)
        return created
