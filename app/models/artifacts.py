"""
Pydantic schemas for generated artifact payloads

Every optional field carries an explicit empty default so that a dumped
payload always exposes the full key set.
"""
from typing import List
from pydantic import BaseModel, Field, field_validator


class _Payload(BaseModel):
    model_config = {"populate_by_name": True, "extra": "ignore"}


class StudyPlanWeek(_Payload):
    """One week of a study plan"""
    week: int
    title: str
    tasks: List[str] = Field(default_factory=list)
    objectives: List[str] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)


class StudyPlanContent(_Payload):
    """Study plan payload (keyed object)"""
    title: str = Field(..., min_length=1)
    description: str = ""
    total_weeks: int = 0
    estimated_hours_per_week: int = 0
    weeks: List[StudyPlanWeek] = Field(..., min_length=1)


class Flashcard(_Payload):
    """Single flashcard"""
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    difficulty: str = ""
    question_type: str = ""
    options: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class FlashcardDeck(_Payload):
    """Flashcard payload; providers return the bare card list"""
    cards: List[Flashcard] = Field(..., min_length=1)
    count: int = 0


class MindMapNode(_Payload):
    """One node of a mind map graph"""
    id: str
    title: str = Field(..., min_length=1)
    description: str = ""
    difficulty: str = ""
    learning_type: str = ""
    estimated_hours: int = 0
    tasks: List[str] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)
    outcomes: List[str] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)


class MindMapConnection(_Payload):
    """Directed edge between two mind map nodes"""
    from_: str = Field(..., alias="from")
    to: str
    type: str = ""


class MindMapContent(_Payload):
    """Mind map payload (keyed object)"""
    title: str = Field(..., min_length=1)
    text: str = ""
    total_weeks: int = 0
    estimated_total_hours: int = 0
    nodes: List[MindMapNode] = Field(..., min_length=1)
    connections: List[MindMapConnection] = Field(default_factory=list)

    @field_validator("connections")
    @classmethod
    def _connections_reference_nodes(cls, value, info):
        node_ids = {node.id for node in info.data.get("nodes") or []}
        return [c for c in value if c.from_ in node_ids and c.to in node_ids]


def dump_payload(model: BaseModel) -> dict:
    """Serialize a payload model with its public key names"""
    return model.model_dump(by_alias=True, mode="json")
