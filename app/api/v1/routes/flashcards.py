"""
Flashcard generation routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from loguru import logger

from app.models.requests import FlashcardRequest
from app.models.responses import ArtifactResponse, GenerationResponse
from app.services.generation.orchestrator import GenerationOrchestrator
from app.utils.dependencies import (
    error_envelope,
    get_owner_id,
    get_flashcard_orchestrator,
    handle_service_errors,
)

router = APIRouter(prefix="/flashcards", tags=["Flashcards"])


@router.post("/generate", response_model=GenerationResponse)
@handle_service_errors
async def generate_flashcards(
    request: FlashcardRequest,
    owner_id: Optional[str] = Depends(get_owner_id),
    orchestrator: GenerationOrchestrator = Depends(get_flashcard_orchestrator)
):
    """
    Generate a flashcard deck for a document

    - **resource_id**: Document id
    - **count**: Number of cards, 1 to 50 (default 15)
    - **difficulty**: easy, medium, hard or mixed
    - **question_types**: Any of open, multiple_choice, fill_blank
    - **focus_areas**: Topics to emphasize
    - **force_regenerate**: Ignore the stored deck and generate a new one
    """
    logger.info(f"🃏 Flashcard request for document {request.resource_id}")
    result = await orchestrator.generate(
        request.resource_id, owner_id, request.parameters, request.force_regenerate
    )
    return GenerationResponse(
        success=True,
        message="Flashcards loaded from cache" if result.cached else "Flashcards generated",
        data=result.to_dict(),
    )


@router.get("/{resource_id}", response_model=ArtifactResponse)
@handle_service_errors
async def get_flashcards(
    resource_id: str,
    owner_id: Optional[str] = Depends(get_owner_id),
    orchestrator: GenerationOrchestrator = Depends(get_flashcard_orchestrator)
):
    """Return the stored flashcards for a document, if they were generated"""
    if not owner_id:
        return error_envelope(status.HTTP_400_BAD_REQUEST, "X-User-Id header is required")
    artifact = await orchestrator.get_cached(resource_id, owner_id)
    if artifact is None:
        return error_envelope(status.HTTP_404_NOT_FOUND, "Flashcards not found")
    return ArtifactResponse(success=True, data=artifact.model_dump(mode="json"))
