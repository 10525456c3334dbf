"""
In-process artifact store and ownership registry

Used for local development and tests. Nothing survives a restart.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from app.core.interfaces.artifact_store import (
    Artifact,
    ArtifactStore,
    OwnershipChecker,
    ResourceRecord,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryArtifactStore(ArtifactStore):
    """Dictionary-backed store keyed by (resource_id, owner_id)"""

    def __init__(self, artifact_type: str, clock: Callable[[], datetime] = _utcnow):
        self.artifact_type = artifact_type
        self._clock = clock
        self._rows: Dict[Tuple[str, str], Artifact] = {}
        self._lock = asyncio.Lock()

    async def get(self, resource_id: str, owner_id: str) -> Optional[Artifact]:
        async with self._lock:
            artifact = self._rows.get((resource_id, owner_id))
            return artifact.model_copy(deep=True) if artifact else None

    async def upsert(
        self,
        resource_id: str,
        owner_id: str,
        payload: Dict[str, Any],
        source: str,
        warnings: Optional[List[str]] = None
    ) -> Artifact:
        async with self._lock:
            key = (resource_id, owner_id)
            previous = self._rows.get(key)
            now = self._clock()

            if previous is None:
                generated_at = now
            else:
                generated_at = previous.generated_at
                # updated_at must move forward even when the clock does not
                if now <= previous.updated_at:
                    now = previous.updated_at + timedelta(microseconds=1)

            artifact = Artifact(
                resource_id=resource_id,
                owner_id=owner_id,
                artifact_type=self.artifact_type,
                payload=payload,
                source=source,
                generated_at=generated_at,
                updated_at=now,
                warnings=list(warnings or []),
            )
            self._rows[key] = artifact
            logger.debug(f"Upserted {self.artifact_type} for ({resource_id}, {owner_id})")
            return artifact.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._rows)


class InMemoryOwnershipChecker(OwnershipChecker):
    """
    Registry of resources and their owners

    With auto_register enabled an unknown resource is claimed by the first
    owner that asks for it; other owners are denied afterwards.
    """

    def __init__(self, auto_register: bool = False):
        self.auto_register = auto_register
        self._resources: Dict[str, ResourceRecord] = {}

    def register(self, resource_id: str, owner_id: str, title: str = "", content: Optional[str] = None) -> ResourceRecord:
        record = ResourceRecord(
            resource_id=str(resource_id),
            owner_id=str(owner_id),
            title=title,
            content=content,
        )
        self._resources[record.resource_id] = record
        return record

    async def resolve(self, resource_id: str, owner_id: str) -> Optional[ResourceRecord]:
        record = self._resources.get(resource_id)
        if record is None and self.auto_register:
            logger.info(f"📌 Registering resource {resource_id} for owner {owner_id}")
            record = self.register(resource_id, owner_id)
        if record is None or record.owner_id != owner_id:
            return None
        return record
