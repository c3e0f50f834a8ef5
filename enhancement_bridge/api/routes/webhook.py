"""
JIRA webhook endpoint.
"""

from typing import Any, Union

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse, PlainTextResponse

from enhancement_bridge.api.deps import get_pipeline
from enhancement_bridge.core.constants import NO_RELEVANT_UPDATES
from enhancement_bridge.core.exceptions import TicketNotFoundError
from enhancement_bridge.core.logging import get_logger
from enhancement_bridge.services.pipeline import BridgePipeline

logger = get_logger(__name__)

router = APIRouter()


@router.post("/webhook", response_model=None)
async def jira_webhook(
    body: dict[str, Any] = Body(...),
    pipeline: BridgePipeline = Depends(get_pipeline),
) -> Union[JSONResponse, PlainTextResponse]:
    """
    Receive a JIRA issue-updated event.

    Answers "No relevant updates." unless the change triggers generation.
    """
    logger.info("Webhook received", ticket_id=(body.get("issue") or {}).get("key"))

    try:
        result = await pipeline.handle_webhook(body)
    except TicketNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": e.message})

    if result is None:
        return PlainTextResponse(NO_RELEVANT_UPDATES)
    return JSONResponse(content=result)
