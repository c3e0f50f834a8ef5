"""
Pytest configuration and fixtures.
"""

from datetime import datetime
from typing import Any, AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from enhancement_bridge.ai.llm_client import LLMClient
from enhancement_bridge.api.deps import get_pipeline, get_push_clients
from enhancement_bridge.core.config import WorkflowSettings
from enhancement_bridge.core.constants import Variant
from enhancement_bridge.domain.records import EnhancementTicket, StoryTicket
from enhancement_bridge.jira.client import JiraClient
from enhancement_bridge.jira.fetcher import TicketFetcher
from enhancement_bridge.jira.importer import RecordImporter
from enhancement_bridge.main import app
from enhancement_bridge.repositories.record_store import ChangeTracker, RecordStore
from enhancement_bridge.services.change_detector import ChangeDetector
from enhancement_bridge.services.generator import RecordGenerator
from enhancement_bridge.services.pipeline import BridgePipeline

FIXED_NOW = datetime(2024, 3, 5, 14, 7, 9)

ENHANCEMENT_RESPONSE = """```json
{
  "enhancements": [
    {
      "enhancement_id": "RSOFT-1-ENH-1",
      "summary": "Export report as CSV",
      "description": "Allow analysts to export the report.",
      "i_want": "As an analyst, I want a CSV export",
      "so_that": "So that I can share numbers",
      "acceptance_criteria": "Given a report, when I export, then a CSV downloads"
    }
  ]
}
```"""


def adf_doc(*paragraphs: str) -> dict[str, Any]:
    """Build an ADF document with one paragraph per string."""
    return {
        "type": "doc",
        "version": 1,
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": text}]}
            for text in paragraphs
        ],
    }


@pytest.fixture
def workflow() -> WorkflowSettings:
    """Workflow settings with built-in defaults."""
    return WorkflowSettings(public_base_url="http://localhost:3000")


@pytest.fixture
def enhancement_issue() -> dict[str, Any]:
    """JIRA v3 issue payload from the enhancement project."""
    return {
        "key": "RSOFT-1",
        "fields": {
            "summary": "Reporting improvements",
            "project": {"key": "RSOFT"},
            "assignee": {"displayName": "TeamBA"},
            "description": adf_doc("Reports need to be shareable."),
            "customfield_10040": adf_doc("to export reports"),
            "customfield_10041": adf_doc("I can share them"),
            "customfield_10059": adf_doc("Export produces a CSV"),
            "attachment": [{"content": "https://jira.example.com/secure/attachment/1/mock.png"}],
        },
    }


@pytest.fixture
def story_issue() -> dict[str, Any]:
    """JIRA v3 issue payload from the story project."""
    return {
        "key": "RSOFTBMS-7",
        "fields": {
            "summary": "Billing screen",
            "project": {"key": "RSOFTBMS"},
            "description": adf_doc("Billing screen for branch staff."),
            "customfield_10129": "Staff can raise a bill",
            "customfield_10127": adf_doc("Totals are correct"),
            "customfield_10128": "Amount must be positive",
        },
    }


@pytest.fixture
def enhancement_ticket() -> EnhancementTicket:
    """Normalized enhancement ticket."""
    return EnhancementTicket(
        ticketId="RSOFT-1",
        summary="Reporting improvements",
        description="Reports need to be shareable.",
        i_want="to export reports",
        so_that="I can share them",
        acceptance_criteria="Export produces a CSV",
        projectKey="RSOFT",
    )


@pytest.fixture
def story_ticket() -> StoryTicket:
    """Normalized story ticket."""
    return StoryTicket(
        ticketId="RSOFTBMS-7",
        summary="Billing screen",
        description="Billing screen for branch staff.",
        user_story_summary="Staff can raise a bill",
        check_points="Totals are correct",
        validations="Amount must be positive",
        projectKey="RSOFTBMS",
    )


@pytest.fixture
def mock_llm_client() -> AsyncMock:
    """LLM client that answers with one enhancement."""
    client = AsyncMock(spec=LLMClient)
    client.generate_response.return_value = ENHANCEMENT_RESPONSE
    return client


@pytest.fixture
def mock_jira_client(enhancement_issue: dict[str, Any]) -> AsyncMock:
    """JIRA client for the enhancement site."""
    client = AsyncMock(spec=JiraClient)
    client.get_issue.return_value = enhancement_issue
    client.add_comment.return_value = {"id": "10001"}
    return client


@pytest.fixture
def mock_story_jira_client(story_issue: dict[str, Any]) -> AsyncMock:
    """JIRA client for the story site."""
    client = AsyncMock(spec=JiraClient)
    client.get_issue.return_value = story_issue
    client.add_comment.return_value = {"id": "10002"}
    return client


@pytest.fixture
def jira_clients(mock_jira_client: AsyncMock, mock_story_jira_client: AsyncMock) -> dict[Variant, Any]:
    return {Variant.ENHANCEMENT: mock_jira_client, Variant.STORY: mock_story_jira_client}


@pytest.fixture
def record_store() -> RecordStore:
    return RecordStore()


@pytest.fixture
def change_tracker() -> ChangeTracker:
    return ChangeTracker()


@pytest.fixture
def pipeline(
    workflow: WorkflowSettings,
    jira_clients: dict[Variant, Any],
    mock_llm_client: AsyncMock,
    record_store: RecordStore,
    change_tracker: ChangeTracker,
) -> BridgePipeline:
    """Pipeline over real services with mocked JIRA and model clients."""
    return BridgePipeline(
        detector=ChangeDetector(change_tracker, workflow),
        fetcher=TicketFetcher(jira_clients, workflow),
        generator=RecordGenerator(mock_llm_client, workflow),
        store=record_store,
        importer=RecordImporter(jira_clients, workflow, clock=lambda: FIXED_NOW),
        jira_clients=jira_clients,
        workflow=workflow,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
async def async_client(pipeline: BridgePipeline) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_push_clients] = lambda: {}
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
