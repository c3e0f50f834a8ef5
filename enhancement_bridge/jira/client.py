"""
Async JIRA REST client.
One instance per JIRA site (default project and story project).
"""

from typing import Any, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from enhancement_bridge.core.config import JiraSettings, JiraStorySettings
from enhancement_bridge.core.exceptions import JiraError
from enhancement_bridge.core.logging import get_logger
from enhancement_bridge.jira.adf import plain_text_doc

logger = get_logger(__name__)


class JiraClient:
    """
    Thin wrapper over the JIRA Cloud REST API (v2 and v3 endpoints).
    Raises JiraError on any HTTP or transport failure.
    """

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the JIRA client.

        Args:
            base_url: JIRA site URL, e.g. https://example.atlassian.net
            email: Account email for basic auth
            api_token: API token for basic auth
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.api_token = api_token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(
        cls, jira_settings: JiraSettings | JiraStorySettings
    ) -> "JiraClient":
        return cls(
            base_url=jira_settings.base_url,
            email=jira_settings.email,
            api_token=jira_settings.api_token,
            timeout=jira_settings.timeout,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self.email, self.api_token),
                timeout=httpx.Timeout(self.timeout),
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception_type((httpx.ConnectError, httpx.ConnectTimeout)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _send(
        self,
        method: str,
        endpoint: str,
        data: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        client = await self._get_client()
        response = await client.request(method=method, url=endpoint, json=data)
        response.raise_for_status()
        return response

    async def _request(
        self,
        method: str,
        endpoint: str,
        data: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Make an HTTP request to JIRA.

        Connection failures are retried; HTTP error statuses are not.

        Raises:
            JiraError: If the request fails
        """
        try:
            response = await self._send(method, endpoint, data)
        except httpx.HTTPStatusError as e:
            try:
                body: Any = e.response.json()
            except ValueError:
                body = e.response.text
            logger.error(
                "JIRA request failed",
                endpoint=endpoint,
                status_code=e.response.status_code,
                response_body=body,
            )
            raise JiraError(
                message=f"HTTP {e.response.status_code}",
                status_code=e.response.status_code,
                response_body=body,
            ) from e
        except httpx.RequestError as e:
            logger.error("JIRA request error", endpoint=endpoint, error=str(e))
            raise JiraError(message=f"Request failed: {e}") from e

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def get_issue(self, issue_key: str) -> dict[str, Any]:
        """Fetch an issue with all fields (REST v3, ADF bodies)."""
        return await self._request("GET", f"/rest/api/3/issue/{issue_key}")

    async def create_issue(self, fields: dict[str, Any]) -> str:
        """Create an issue and return its key."""
        created = await self._request("POST", "/rest/api/3/issue", {"fields": fields})
        key = created.get("key") if isinstance(created, dict) else None
        if not key:
            raise JiraError(message="Issue created without a key in the response", response_body=created)
        return key

    async def link_issues(
        self,
        inward_key: str,
        outward_key: str,
        link_type: str = "Relates",
    ) -> None:
        """Create an issue link between two issues."""
        await self._request(
            "POST",
            "/rest/api/2/issueLink",
            {
                "type": {"name": link_type},
                "inwardIssue": {"key": inward_key},
                "outwardIssue": {"key": outward_key},
            },
        )

    async def add_comment(self, issue_key: str, body: str) -> dict[str, Any]:
        """Add a wiki-markup comment (REST v2)."""
        return await self._request(
            "POST", f"/rest/api/2/issue/{issue_key}/comment", {"body": body}
        )

    async def add_adf_comment(self, issue_key: str, text: str) -> dict[str, Any]:
        """Add a plain-text comment as an ADF document (REST v3)."""
        return await self._request(
            "POST", f"/rest/api/3/issue/{issue_key}/comment", {"body": plain_text_doc(text)}
        )

    async def __aenter__(self) -> "JiraClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
