"""
Abstract interfaces for artifact persistence and resource ownership
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field


class Artifact(BaseModel):
    """Current generated artifact for one (resource_id, owner_id) key"""
    resource_id: str
    owner_id: str
    artifact_type: str
    payload: Dict[str, Any]
    source: str  # provider id or "fallback"
    generated_at: datetime
    updated_at: datetime
    warnings: List[str] = Field(default_factory=list)


class ResourceRecord(BaseModel):
    """Owning resource as seen by the ownership collaborator"""
    resource_id: str
    owner_id: str
    title: str = ""
    content: Optional[str] = None


class ArtifactStore(ABC):
    """
    Abstract base class for artifact stores

    One store holds one artifact type. Rows are addressed by
    (resource_id, owner_id) and replaced wholesale on upsert.
    """

    artifact_type: str

    @abstractmethod
    async def get(self, resource_id: str, owner_id: str) -> Optional[Artifact]:
        """
        Look up the current artifact for a key

        Returns:
            The stored artifact, or None if nothing was generated yet
        """
        pass

    @abstractmethod
    async def upsert(
        self,
        resource_id: str,
        owner_id: str,
        payload: Dict[str, Any],
        source: str,
        warnings: Optional[List[str]] = None
    ) -> Artifact:
        """
        Insert or replace the artifact for a key (last write wins)

        Returns:
            The artifact as persisted

        Raises:
            PersistenceError: If the write failed
        """
        pass


class OwnershipChecker(ABC):
    """Read-only check that a resource exists and belongs to an owner"""

    @abstractmethod
    async def resolve(self, resource_id: str, owner_id: str) -> Optional[ResourceRecord]:
        """
        Resolve the resource for the given owner

        Returns:
            The resource record, or None if it is missing or owned by someone else
        """
        pass
