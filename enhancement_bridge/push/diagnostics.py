"""
Push channel connectivity diagnostics.
"""

import asyncio
from typing import Any, Optional

import httpx

from enhancement_bridge.core.logging import get_logger

logger = get_logger(__name__)


async def diagnose_connection(
    url: Optional[str],
    timeout: float = 5.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict[str, Any]:
    """
    Check DNS, reachability and SSE support of an event-stream URL.

    Returns:
        Dict with url, dnsResolved, hostReachable, sseSupported, errors
    """
    results: dict[str, Any] = {
        "url": url,
        "dnsResolved": False,
        "hostReachable": False,
        "sseSupported": False,
        "errors": [],
    }

    if not url:
        results["errors"].append("Push channel URL is not configured")
        return results

    try:
        hostname = httpx.URL(url).host
    except (httpx.InvalidURL, ValueError) as e:
        results["errors"].append(f"Diagnosis failed: {e}")
        return results
    if not hostname:
        results["errors"].append(f"Invalid URL: {url}")
        return results

    try:
        await asyncio.get_running_loop().getaddrinfo(hostname, None)
        results["dnsResolved"] = True
    except OSError as e:
        results["errors"].append(f"DNS resolution failed: {e}")

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            # Only the headers matter; the body of an event stream never ends.
            async with client.stream("GET", url, headers={"Accept": "text/event-stream"}) as response:
                results["hostReachable"] = response.status_code < 500
                if "text/event-stream" in response.headers.get("content-type", ""):
                    results["sseSupported"] = True
                else:
                    results["errors"].append("Server does not support Server-Sent Events")
    except httpx.HTTPError as e:
        results["errors"].append(f"Connection failed: {e}")

    logger.info("Push channel diagnosed", url=url, errors=len(results["errors"]))
    return results
