"""
Mind map generation routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from loguru import logger

from app.models.requests import MindMapRequest
from app.models.responses import ArtifactResponse, GenerationResponse
from app.services.generation.orchestrator import GenerationOrchestrator
from app.utils.dependencies import (
    error_envelope,
    get_mind_map_orchestrator,
    get_owner_id,
    handle_service_errors,
)

router = APIRouter(prefix="/mind-maps", tags=["Mind Maps"])


@router.post("/generate", response_model=GenerationResponse)
@handle_service_errors
async def generate_mind_map(
    request: MindMapRequest,
    owner_id: Optional[str] = Depends(get_owner_id),
    orchestrator: GenerationOrchestrator = Depends(get_mind_map_orchestrator)
):
    """
    Generate a mind map from a study plan's weeks

    The response carries both the node graph and a text rendering.
    """
    logger.info(f"🧠 Mind map request for study plan {request.resource_id}")
    result = await orchestrator.generate(
        request.resource_id, owner_id, request.parameters, request.force_regenerate
    )
    return GenerationResponse(
        success=True,
        message="Mind map loaded from cache" if result.cached else "Mind map generated",
        data=result.to_dict(),
    )


@router.get("/{resource_id}", response_model=ArtifactResponse)
@handle_service_errors
async def get_mind_map(
    resource_id: str,
    owner_id: Optional[str] = Depends(get_owner_id),
    orchestrator: GenerationOrchestrator = Depends(get_mind_map_orchestrator)
):
    if not owner_id:
        return error_envelope(status.HTTP_400_BAD_REQUEST, "X-User-Id header is required")
    artifact = await orchestrator.get_cached(resource_id, owner_id)
    if artifact is None:
        return error_envelope(status.HTTP_404_NOT_FOUND, "Mind map not found")
    return ArtifactResponse(success=True, data=artifact.model_dump(mode="json"))
