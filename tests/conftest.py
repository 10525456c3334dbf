"""
Shared fixtures: scripted providers, in-memory stores and payload factories
"""
import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Union

import pytest

from app.core.interfaces.text_provider import (
    EmptyResponse,
    GenerationOutcome,
    Prompt,
    ProviderHandle,
    Success,
    TextProvider,
)
from app.services.generation.orchestrator import GenerationOrchestrator
from app.services.generation.provider_chain import ProviderChain
from app.services.generation.types import ArtifactType
from app.services.storage.memory_store import InMemoryArtifactStore, InMemoryOwnershipChecker


Step = Union[GenerationOutcome, str, Exception, float]


class ScriptedProvider(TextProvider):
    """
    Provider double that replays a script, one step per call

    A str step is returned as Success, an Exception is raised, a float makes
    the call sleep that many seconds. The last step repeats once the script
    runs out.
    """

    def __init__(self, name: str, *steps: Step):
        self.name = name
        self.steps: List[Step] = list(steps) or [EmptyResponse()]
        self.calls: List[Prompt] = []

    async def attempt(self, prompt: Prompt, timeout_budget: float) -> GenerationOutcome:
        self.calls.append(prompt)
        step = self.steps[min(len(self.calls), len(self.steps)) - 1]
        if isinstance(step, Exception):
            raise step
        if isinstance(step, float):
            await asyncio.sleep(step)
            return Success(raw_content="[]")
        if isinstance(step, str):
            return Success(raw_content=step)
        return step

    def get_service_name(self) -> str:
        return f"Scripted ({self.name})"

    def is_available(self) -> bool:
        return True


def make_handles(*providers: ScriptedProvider, timeout_budget: float = 1.0) -> List[ProviderHandle]:
    return [
        ProviderHandle(id=p.name, priority=index, timeout_budget=timeout_budget, provider=p)
        for index, p in enumerate(providers)
    ]


class StepClock:
    """Deterministic clock advancing one second per reading"""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc), step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


# ----------------------------------------------------------------------
# Store doubles


class BrokenWriteStore(InMemoryArtifactStore):
    async def upsert(self, *args, **kwargs):
        raise RuntimeError("connection reset")


class BrokenReadStore(InMemoryArtifactStore):
    async def get(self, resource_id, owner_id):
        raise RuntimeError("read timeout")


# ----------------------------------------------------------------------
# Payload factories


def study_plan_json(weeks: int, title: str = "Python Study Plan") -> str:
    return json.dumps({
        "title": title,
        "description": "Learn Python step by step",
        "total_weeks": weeks,
        "estimated_hours_per_week": 6,
        "weeks": [
            {
                "week": number,
                "title": f"Week {number} topics",
                "tasks": [f"Task {number}.1", f"Task {number}.2"],
                "objectives": [f"Objective {number}"],
                "resources": [f"Resource {number}"],
            }
            for number in range(1, weeks + 1)
        ],
    })


def flashcards_json(count: int) -> str:
    return json.dumps([
        {
            "question": f"Question {index}?",
            "answer": f"Answer {index}",
            "difficulty": "medium",
            "question_type": "open",
            "tags": ["python"],
        }
        for index in range(count)
    ])


def mind_map_json(nodes: int, title: str = "Python Mind Map") -> str:
    return json.dumps({
        "title": title,
        "text": "tree",
        "nodes": [
            {"id": f"week-{index}", "title": f"Week {index + 1}", "estimated_hours": 4}
            for index in range(nodes)
        ],
        "connections": [
            {"from": f"week-{index}", "to": f"week-{index + 1}", "type": "progression"}
            for index in range(nodes - 1)
        ],
    })


STUDY_PLAN_PARAMS = {
    "syllabus": "Variables, control flow, functions, modules and testing.",
    "weeks": 4,
    "course_name": "Intro to Python",
}

FLASHCARD_PARAMS = {
    "count": 5,
    "difficulty": "mixed",
    "question_types": ["open", "multiple_choice", "fill_blank"],
    "content": (
        "Photosynthesis converts light energy into chemical energy. "
        "Chlorophyll absorbs mostly blue and red light. "
        "The Calvin cycle fixes carbon dioxide into sugars."
    ),
}

MIND_MAP_PARAMS = {
    "title": "Intro to Python",
    "weeks": [
        {"title": "Basics", "tasks": ["Install Python", "Variables"]},
        {"title": "Control flow", "tasks": ["if/else", "loops"]},
        {"title": "Functions", "tasks": ["def", "arguments"]},
    ],
}


# ----------------------------------------------------------------------
# Fixtures


@pytest.fixture
def ownership():
    checker = InMemoryOwnershipChecker()
    checker.register("course-1", "user-1", title="Intro to Python")
    checker.register("doc-1", "user-1", title="Biology Notes", content=FLASHCARD_PARAMS["content"])
    checker.register("plan-1", "user-1", title="Intro to Python Plan")
    return checker


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def make_orchestrator(ownership, clock) -> Callable[..., GenerationOrchestrator]:
    """Build an orchestrator over scripted providers and a fresh in-memory store"""

    def factory(artifact_type: ArtifactType, *providers: ScriptedProvider, timeout_budget: float = 1.0, store=None):
        return GenerationOrchestrator(
            artifact_type,
            chain=ProviderChain(make_handles(*providers, timeout_budget=timeout_budget)),
            store=store if store is not None else InMemoryArtifactStore(artifact_type.value, clock=clock),
            ownership=ownership,
        )

    return factory


