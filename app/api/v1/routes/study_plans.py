"""
Study plan generation routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from loguru import logger

from app.models.requests import StudyPlanRequest
from app.models.responses import ArtifactResponse, GenerationResponse
from app.services.generation.orchestrator import GenerationOrchestrator
from app.utils.dependencies import (
    error_envelope,
    get_owner_id,
    get_study_plan_orchestrator,
    handle_service_errors,
)

router = APIRouter(prefix="/study-plans", tags=["Study Plans"])


@router.post("/generate", response_model=GenerationResponse)
@handle_service_errors
async def generate_study_plan(
    request: StudyPlanRequest,
    owner_id: Optional[str] = Depends(get_owner_id),
    orchestrator: GenerationOrchestrator = Depends(get_study_plan_orchestrator)
):
    """
    Generate a week-by-week study plan for a course

    - **resource_id**: Course id
    - **syllabus**: Course syllabus or content (at least 10 characters)
    - **weeks**: Number of weeks, 1 to 52
    - **course_name**, **custom_prompt**: Optional extra context
    - **force_regenerate**: Ignore the stored plan and generate a new one
    """
    logger.info(f"📅 Study plan request for course {request.resource_id}")
    result = await orchestrator.generate(
        request.resource_id, owner_id, request.parameters, request.force_regenerate
    )
    return GenerationResponse(
        success=True,
        message="Study plan loaded from cache" if result.cached else "Study plan generated",
        data=result.to_dict(),
    )


@router.get("/{resource_id}", response_model=ArtifactResponse)
@handle_service_errors
async def get_study_plan(
    resource_id: str,
    owner_id: Optional[str] = Depends(get_owner_id),
    orchestrator: GenerationOrchestrator = Depends(get_study_plan_orchestrator)
):
    """Return the stored study plan for a course, if one was generated"""
    if not owner_id:
        return error_envelope(status.HTTP_400_BAD_REQUEST, "X-User-Id header is required")
    artifact = await orchestrator.get_cached(resource_id, owner_id)
    if artifact is None:
        return error_envelope(status.HTTP_404_NOT_FOUND, "Study plan not found")
    return ArtifactResponse(success=True, data=artifact.model_dump(mode="json"))
