"""
Pydantic models for API requests
"""
from typing import Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class GenerateArtifactRequest(BaseModel):
    """
    Request body shared by the generate endpoints

    Everything besides resource_id and force_regenerate is a generation
    parameter for the artifact type and is validated by the pipeline, so
    unknown keys are kept rather than dropped.
    """
    model_config = ConfigDict(extra="allow")

    resource_id: Union[str, int, None] = Field(None, description="Course, document or study plan id")
    force_regenerate: Any = Field(False, description="Skip the cached artifact and generate again")

    @property
    def parameters(self) -> dict:
        return dict(self.model_extra or {})


class StudyPlanRequest(GenerateArtifactRequest):
    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "resource_id": "course-42",
                "syllabus": "Week 1: Variables. Week 2: Control flow. Week 3: Functions.",
                "weeks": 4,
                "course_name": "Intro to Python",
                "custom_prompt": "Focus on hands-on exercises",
                "force_regenerate": False
            }
        },
    )


class FlashcardRequest(GenerateArtifactRequest):
    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "resource_id": "doc-7",
                "count": 15,
                "difficulty": "mixed",
                "question_types": ["open", "multiple_choice"],
                "focus_areas": ["photosynthesis"],
                "force_regenerate": False
            }
        },
    )


class MindMapRequest(GenerateArtifactRequest):
    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "resource_id": "plan-3",
                "title": "Intro to Python",
                "weeks": [
                    {"title": "Basics", "tasks": ["Install Python", "Variables"]},
                    {"title": "Control flow", "tasks": ["if/else", "loops"]}
                ],
                "force_regenerate": False
            }
        },
    )
