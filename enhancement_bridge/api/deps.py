"""
API dependencies for dependency injection.
"""

from typing import Optional

from enhancement_bridge.ai.llm_client import LLMClient, create_llm_client
from enhancement_bridge.core.config import Settings, settings
from enhancement_bridge.core.constants import Variant
from enhancement_bridge.core.exceptions import ConfigurationError
from enhancement_bridge.core.logging import get_logger
from enhancement_bridge.jira.client import JiraClient
from enhancement_bridge.jira.fetcher import TicketFetcher
from enhancement_bridge.jira.importer import RecordImporter
from enhancement_bridge.push.broadcaster import ConnectionManager, StatusBroadcaster
from enhancement_bridge.push.event_stream import EventStreamClient
from enhancement_bridge.repositories.record_store import ChangeTracker, RecordStore
from enhancement_bridge.services.change_detector import ChangeDetector
from enhancement_bridge.services.generator import RecordGenerator
from enhancement_bridge.services.pipeline import BridgePipeline

logger = get_logger(__name__)


class ServiceContainer:
    """
    Container for all application services.
    Provides singleton instances of services.
    """

    _instance: Optional["ServiceContainer"] = None

    def __init__(self, app_settings: Settings = settings) -> None:
        self.settings = app_settings
        self._initialized = False
        # Available before initialize() so the WebSocket route never needs credentials
        self.connection_manager = ConnectionManager()
        self.broadcaster = StatusBroadcaster(self.connection_manager)

    @classmethod
    def get_instance(cls) -> "ServiceContainer":
        """Get the singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def validate(self) -> None:
        """
        Check required credentials.

        Raises:
            ConfigurationError: If a required setting is missing
        """
        if not self.settings.jira.api_token:
            raise ConfigurationError("JIRA_API_TOKEN is missing. Please check your .env file.")
        if not self.settings.jira.base_url:
            raise ConfigurationError("JIRA_BASE_URL is missing. Please check your .env file.")
        if not self.settings.jira_story.api_token:
            logger.warning("JIRA_BMS_API_TOKEN is not set; story project calls will fail")

    def initialize(self) -> None:
        """Initialize all services."""
        if self._initialized:
            return

        s = self.settings

        # JIRA clients, one per site
        self._jira_clients = {
            Variant.ENHANCEMENT: JiraClient.from_settings(s.jira),
            Variant.STORY: JiraClient.from_settings(s.jira_story),
        }

        self._llm_client: LLMClient = create_llm_client(s.gemini)

        # Process-level stores
        self._record_store = RecordStore()
        self._change_tracker = ChangeTracker()

        self._pipeline = BridgePipeline(
            detector=ChangeDetector(self._change_tracker, s.workflow),
            fetcher=TicketFetcher(self._jira_clients, s.workflow),
            generator=RecordGenerator(self._llm_client, s.workflow),
            store=self._record_store,
            importer=RecordImporter(self._jira_clients, s.workflow),
            jira_clients=self._jira_clients,
            workflow=s.workflow,
            broadcaster=self.broadcaster,
        )

        # Push channels, one per configured URL
        self._push_clients: dict[Variant, EventStreamClient] = {}
        for variant, url in (
            (Variant.ENHANCEMENT, s.push.server_url),
            (Variant.STORY, s.push.server_url_bms),
        ):
            if not url:
                continue
            client = EventStreamClient(
                name=variant.value,
                url=url,
                max_retries=s.push.max_retries,
                retry_interval=s.push.retry_interval,
            )
            client.add_listener(self.broadcaster.relay_push_event)
            self._push_clients[variant] = client

        self._initialized = True
        logger.info("Service container initialized", push_channels=[v.value for v in self._push_clients])

    async def start_push_channels(self) -> None:
        self.initialize()
        if not self.settings.push.autostart:
            return
        for client in self._push_clients.values():
            client.start()

    async def shutdown(self) -> None:
        """Stop background tasks and close HTTP clients."""
        if not self._initialized:
            return
        for push_client in self._push_clients.values():
            await push_client.stop()
        for jira_client in self._jira_clients.values():
            await jira_client.close()

    @property
    def pipeline(self) -> BridgePipeline:
        """Get the bridge pipeline."""
        self.initialize()
        return self._pipeline

    @property
    def record_store(self) -> RecordStore:
        """Get the record store."""
        self.initialize()
        return self._record_store

    @property
    def push_clients(self) -> dict[Variant, EventStreamClient]:
        """Get the push channel clients."""
        self.initialize()
        return self._push_clients


# Singleton container instance
container = ServiceContainer.get_instance()


# Dependency functions for FastAPI
def get_pipeline() -> BridgePipeline:
    """Get the bridge pipeline instance."""
    return container.pipeline


def get_push_clients() -> dict[Variant, EventStreamClient]:
    """Get the push channel clients."""
    return container.push_clients


def get_connection_manager() -> ConnectionManager:
    """Get the WebSocket connection manager."""
    return container.connection_manager
