"""
Pydantic models for API responses
"""
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field


class BaseResponse(BaseModel):
    """Base response model"""
    success: bool = Field(..., description="Whether the request was successful")
    message: Optional[str] = Field(None, description="Human-readable message")
    error: Optional[str] = Field(None, description="Error message if unsuccessful")


class GenerationResponse(BaseResponse):
    """Generated or cached artifact plus how it was obtained"""
    data: Optional[Dict[str, Any]] = Field(None, description="Artifact, source, cached, degraded, attempts")


class ArtifactResponse(BaseResponse):
    """Stored artifact lookup"""
    data: Optional[Dict[str, Any]] = Field(None, description="Stored artifact")


class ProviderStatus(BaseModel):
    id: str
    priority: int
    timeout_budget: float
    service: str
    available: bool


class ProviderStatusResponse(BaseResponse):
    providers: List[ProviderStatus] = Field(default_factory=list)
    fallback_only: bool = Field(False, description="True when no provider is configured")
