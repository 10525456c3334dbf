"""
Supabase-backed artifact store and ownership checks

The supabase client is synchronous; calls run in a worker thread so the
event loop stays free while a request waits on the database.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger
from supabase import Client

from app.core.exceptions import PersistenceError
from app.core.interfaces.artifact_store import (
    Artifact,
    ArtifactStore,
    OwnershipChecker,
    ResourceRecord,
)


ARTIFACT_TABLES = {
    "study_plan": "study_plan_artifacts",
    "flashcards": "flashcard_artifacts",
    "mind_map": "mind_map_artifacts",
}


class SupabaseArtifactStore(ArtifactStore):
    """One Supabase table per artifact type, unique on (resource_id, owner_id)"""

    def __init__(self, client: Client, artifact_type: str, table: Optional[str] = None):
        self.client = client
        self.artifact_type = artifact_type
        self.table = table or ARTIFACT_TABLES[artifact_type]

    async def get(self, resource_id: str, owner_id: str) -> Optional[Artifact]:
        response = await asyncio.to_thread(self._select, resource_id, owner_id)
        if not response.data:
            return None
        return self._to_artifact(response.data[0])

    async def upsert(
        self,
        resource_id: str,
        owner_id: str,
        payload: Dict[str, Any],
        source: str,
        warnings: Optional[List[str]] = None
    ) -> Artifact:
        # generated_at is left to the column default so it survives regeneration
        row = {
            "resource_id": resource_id,
            "owner_id": owner_id,
            "payload": payload,
            "source": source,
            "warnings": list(warnings or []),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = await asyncio.to_thread(self._upsert, row)
        except Exception as e:
            raise PersistenceError(f"Failed to save {self.artifact_type} to {self.table}", cause=e) from e

        if not response.data:
            raise PersistenceError(f"Supabase upsert into {self.table} returned no rows")
        logger.debug(f"Upserted {self.artifact_type} row for ({resource_id}, {owner_id})")
        return self._to_artifact(response.data[0])

    def _select(self, resource_id: str, owner_id: str):
        return (
            self.client.table(self.table)
            .select("*")
            .eq("resource_id", resource_id)
            .eq("owner_id", owner_id)
            .limit(1)
            .execute()
        )

    def _upsert(self, row: Dict[str, Any]):
        return self.client.table(self.table).upsert(row, on_conflict="resource_id,owner_id").execute()

    def _to_artifact(self, row: Dict[str, Any]) -> Artifact:
        return Artifact(
            resource_id=str(row["resource_id"]),
            owner_id=str(row["owner_id"]),
            artifact_type=self.artifact_type,
            payload=row.get("payload") or {},
            source=row.get("source") or "",
            generated_at=row.get("generated_at") or row["updated_at"],
            updated_at=row["updated_at"],
            warnings=row.get("warnings") or [],
        )


class SupabaseOwnershipChecker(OwnershipChecker):
    """
    Look up the owning resource row in an application table

    Args:
        client: Supabase client
        table: Table holding the resources (courses, documents, study_plans)
        title_column: Column copied into ResourceRecord.title
        content_column: Optional column copied into ResourceRecord.content
        owner_column: Column holding the owner id
    """

    def __init__(
        self,
        client: Client,
        table: str,
        title_column: str,
        content_column: Optional[str] = None,
        owner_column: str = "user_id",
    ):
        self.client = client
        self.table = table
        self.title_column = title_column
        self.content_column = content_column
        self.owner_column = owner_column

    async def resolve(self, resource_id: str, owner_id: str) -> Optional[ResourceRecord]:
        response = await asyncio.to_thread(self._select, resource_id, owner_id)
        if not response.data:
            logger.info(f"🔒 {self.table} row {resource_id} not found for owner {owner_id}")
            return None
        row = response.data[0]
        return ResourceRecord(
            resource_id=str(row["id"]),
            owner_id=str(row[self.owner_column]),
            title=row.get(self.title_column) or "",
            content=row.get(self.content_column) if self.content_column else None,
        )

    def _select(self, resource_id: str, owner_id: str):
        columns = ["id", self.owner_column, self.title_column]
        if self.content_column:
            columns.append(self.content_column)
        return (
            self.client.table(self.table)
            .select(",".join(columns))
            .eq("id", resource_id)
            .eq(self.owner_column, owner_id)
            .limit(1)
            .execute()
        )
