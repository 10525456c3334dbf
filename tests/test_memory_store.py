"""
Tests for the in-memory artifact store and ownership registry
"""
from datetime import datetime, timezone

import pytest

from app.services.storage.memory_store import InMemoryArtifactStore, InMemoryOwnershipChecker

from conftest import StepClock


@pytest.mark.asyncio
async def test_get_missing_returns_none():
    store = InMemoryArtifactStore("study_plan")
    assert await store.get("course-1", "user-1") is None


@pytest.mark.asyncio
async def test_upsert_then_get_round_trip():
    store = InMemoryArtifactStore("study_plan", clock=StepClock())

    written = await store.upsert("course-1", "user-1", {"title": "Plan"}, "p1", ["short"])
    read = await store.get("course-1", "user-1")

    assert read == written
    assert read.payload == {"title": "Plan"}
    assert read.artifact_type == "study_plan"
    assert read.warnings == ["short"]


@pytest.mark.asyncio
async def test_upsert_replaces_and_keeps_generated_at():
    store = InMemoryArtifactStore("flashcards", clock=StepClock())

    first = await store.upsert("doc-1", "user-1", {"cards": [1]}, "p1")
    second = await store.upsert("doc-1", "user-1", {"cards": [2]}, "fallback")

    assert len(store) == 1
    assert second.payload == {"cards": [2]}
    assert second.source == "fallback"
    assert second.generated_at == first.generated_at
    assert second.updated_at > first.updated_at


@pytest.mark.asyncio
async def test_updated_at_moves_forward_with_frozen_clock():
    frozen = datetime(2024, 5, 1, tzinfo=timezone.utc)
    store = InMemoryArtifactStore("mind_map", clock=lambda: frozen)

    first = await store.upsert("plan-1", "user-1", {}, "p1")
    second = await store.upsert("plan-1", "user-1", {}, "p1")

    assert second.updated_at > first.updated_at


@pytest.mark.asyncio
async def test_keys_are_scoped_by_owner():
    store = InMemoryArtifactStore("study_plan")
    await store.upsert("course-1", "user-1", {"title": "Mine"}, "p1")

    assert await store.get("course-1", "user-2") is None


@pytest.mark.asyncio
async def test_returned_artifacts_are_copies():
    store = InMemoryArtifactStore("study_plan")
    written = await store.upsert("course-1", "user-1", {"title": "Plan"}, "p1")
    written.payload["title"] = "Changed"

    assert (await store.get("course-1", "user-1")).payload == {"title": "Plan"}


@pytest.mark.asyncio
async def test_ownership_registry():
    checker = InMemoryOwnershipChecker()
    checker.register("doc-1", "user-1", title="Notes", content="Text")

    record = await checker.resolve("doc-1", "user-1")
    assert record.title == "Notes"
    assert record.content == "Text"
    assert await checker.resolve("doc-1", "user-2") is None
    assert await checker.resolve("doc-2", "user-1") is None


@pytest.mark.asyncio
async def test_auto_register_claims_for_first_owner():
    checker = InMemoryOwnershipChecker(auto_register=True)

    assert await checker.resolve("course-9", "user-1") is not None
    assert await checker.resolve("course-9", "user-1") is not None
    assert await checker.resolve("course-9", "user-2") is None
