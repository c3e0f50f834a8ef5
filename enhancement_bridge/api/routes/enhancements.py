"""
Record generation, retrieval and import endpoints.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from enhancement_bridge.api.deps import get_pipeline
from enhancement_bridge.core.config import settings
from enhancement_bridge.core.exceptions import InvalidRequestError, TicketNotFoundError
from enhancement_bridge.core.logging import get_logger
from enhancement_bridge.domain.records import dump_records
from enhancement_bridge.services.pipeline import BridgePipeline

logger = get_logger(__name__)

router = APIRouter()


class GenerateRequest(BaseModel):
    """Manual generation request."""

    model_config = ConfigDict(populate_by_name=True)

    ticket_ids: list[str] = Field(..., alias="ticketIds")
    custom_prompts: dict[str, str] = Field(default_factory=dict, alias="customPrompts")
    project_key: Optional[str] = Field(default=None, alias="projectKey")


class ImportRequest(BaseModel):
    """Records approved in the UI."""

    model_config = ConfigDict(populate_by_name=True)

    enhancements: list[dict[str, Any]] = Field(default_factory=list)
    project_key: Optional[str] = Field(default=None, alias="projectKey")


@router.post("/generate-enhancements")
async def generate_enhancements(
    request: GenerateRequest,
    pipeline: BridgePipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Generate records for the given tickets, in order."""
    logger.info("Manual generation requested", ticket_ids=request.ticket_ids)

    records = await pipeline.generate_for_tickets(
        request.ticket_ids,
        request.custom_prompts,
        request.project_key,
    )
    if not records:
        return JSONResponse(
            status_code=404,
            content={"error": "No enhancements generated. Please check the AI response or input data."},
        )
    return JSONResponse(content={"enhancements": dump_records(records)})


@router.post("/import-enhancements")
async def import_enhancements(
    request: ImportRequest,
    pipeline: BridgePipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Create JIRA issues from approved records."""
    project_key = request.project_key or settings.workflow.enhancement_project_key
    try:
        created = await pipeline.import_records(request.enhancements, project_key)
    except InvalidRequestError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    if project_key.upper() == settings.workflow.story_project_key.upper():
        return JSONResponse(content={"success": True, "importedStoryIds": created})
    return JSONResponse(content={"success": True, "importedEnhancementIds": created})


@router.get("/enhancements/{ticket_id}")
async def get_enhancements(
    ticket_id: str,
    force: bool = Query(default=False),
    project_key: Optional[str] = Query(default=None, alias="projectKey"),
    pipeline: BridgePipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Return stored records, regenerating when forced or absent."""
    try:
        records = await pipeline.get_records(ticket_id, force=force, project_key=project_key)
    except TicketNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": e.message})

    if not records:
        return JSONResponse(content={"enhancements": [], "message": "No enhancements generated."})
    return JSONResponse(content={"enhancements": dump_records(records)})
