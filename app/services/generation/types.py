"""
Shared types of the artifact generation pipeline
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from app.core.interfaces.artifact_store import Artifact


FALLBACK_SOURCE = "fallback"
CACHE_SOURCE = "cache"


class ArtifactType(str, Enum):
    STUDY_PLAN = "study_plan"
    FLASHCARDS = "flashcards"
    MIND_MAP = "mind_map"


class GenerationRequest(BaseModel):
    """Validated, defaulted request for one artifact"""
    artifact_type: ArtifactType
    resource_id: str
    owner_id: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    force_regenerate: bool = False

    def expected_count(self) -> int:
        """Number of top-level items the artifact should contain"""
        if self.artifact_type == ArtifactType.STUDY_PLAN:
            return self.parameters["weeks"]
        if self.artifact_type == ArtifactType.FLASHCARDS:
            return self.parameters["count"]
        return len(self.parameters["weeks"])


@dataclass
class SanitizedPayload:
    payload: Dict[str, Any]
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ProviderAttempt:
    """Log entry for one provider invocation"""
    provider_id: str
    outcome: str
    reason: Optional[str] = None
    elapsed: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "outcome": self.outcome,
            "reason": self.reason,
            "elapsed": round(self.elapsed, 3),
        }


@dataclass
class Validated:
    """Chain finished with a sanitizer-accepted payload"""
    payload: SanitizedPayload
    provider_id: str
    attempts: List[ProviderAttempt] = field(default_factory=list)


@dataclass
class Exhausted:
    """Every provider in the chain failed"""
    last_failure_reason: str
    attempts: List[ProviderAttempt] = field(default_factory=list)


ChainResult = Union[Validated, Exhausted]


class GenerationState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REJECTED = "rejected"
    OWNERSHIP_CHECK = "ownership_check"
    DENIED = "denied"
    CACHE_CHECK = "cache_check"
    ATTEMPTING = "attempting"
    SYNTHESIZING = "synthesizing"
    PERSISTING = "persisting"
    DONE = "done"


@dataclass
class GenerationResult:
    """What the orchestrator hands back to the caller"""
    artifact: Artifact
    source: str
    cached: bool = False
    degraded: bool = False
    attempts: List[ProviderAttempt] = field(default_factory=list)
    states: List[GenerationState] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = self.artifact.model_dump(mode="json")
        data.update({
            "source": self.source,
            "artifact_source": self.artifact.source,
            "cached": self.cached,
            "degraded": self.degraded,
            "attempts": [attempt.to_dict() for attempt in self.attempts],
        })
        return data
