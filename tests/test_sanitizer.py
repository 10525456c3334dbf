"""
Tests for ResponseSanitizer: envelope stripping, shape checks, count reconciliation
"""
import json

import pytest

from app.core.exceptions import ParseError
from app.services.generation.normalizer import RequestNormalizer
from app.services.generation.sanitizer import ResponseSanitizer, parse_json, strip_envelope
from app.services.generation.types import ArtifactType

from conftest import (
    FLASHCARD_PARAMS,
    MIND_MAP_PARAMS,
    STUDY_PLAN_PARAMS,
    flashcards_json,
    mind_map_json,
    study_plan_json,
)


BODY = '{"title": "Plan", "weeks": [{"week": 1}]}'

ENVELOPES = [
    ("bare", BODY),
    ("json fence", f"```json\n{BODY}\n```"),
    ("plain fence", f"```\n{BODY}\n```"),
    ("fence with chatter", f"Here is your plan:\n```json\n{BODY}\n```\nGood luck!"),
    ("unterminated fence", f"```json\n{BODY}"),
    ("dangling close fence", f"{BODY}\n```"),
    ("leading prose", f"Sure! Here is the JSON you asked for: {BODY}"),
    ("trailing prose", f"{BODY}\n\nLet me know if you need changes."),
    ("think block", f"<think>The user wants {{weeks}} in order.</think>\n{BODY}"),
    ("thinking block and fence", f"<thinking>plan it</thinking>```json\n{BODY}\n```"),
    ("dangling think close", f"reasoning without an opening tag</think>\n{BODY}"),
    ("byte order mark", "\ufeff" + BODY),
    ("surrounding whitespace", f"\n\n   {BODY}   \n"),
    ("bracket in leading prose", f"Here is the plan [4 weeks]:\n{BODY}"),
    ("brace in trailing prose", f"{BODY}\nTip: use {{placeholders}} in notes."),
    ("short list before body", f"Sections [1, 2] follow:\n{BODY}"),
]


@pytest.mark.parametrize("name,wrapped", ENVELOPES, ids=[e[0] for e in ENVELOPES])
def test_strip_envelope_known_wrappers(name, wrapped):
    assert strip_envelope(wrapped) == BODY


def test_strip_envelope_keeps_array_bodies():
    body = '[{"question": "Q?", "answer": "A"}]'
    assert strip_envelope(f"Here are your cards:\n{body}\nDone.") == body


def test_parse_json_repairs_trailing_commas():
    assert parse_json('{"a": [1, 2,], "b": 3,}') == {"a": [1, 2], "b": 3}


@pytest.mark.parametrize("text", ["", "not json at all", '{"a": '])
def test_parse_json_rejects_garbage(text):
    with pytest.raises(ParseError):
        parse_json(text)


def test_strip_envelope_keeps_trailing_comma_body_for_repair():
    body = '{"title": "Plan", "weeks": [{"week": 1},],}'
    assert parse_json(strip_envelope(f"Plan [draft]: {body} Thanks!")) == {
        "title": "Plan",
        "weeks": [{"week": 1}],
    }


@pytest.mark.parametrize("text", [
    '{"hours": Infinity}',
    '{"hours": -Infinity}',
    '{"week": NaN}',
])
def test_parse_json_rejects_non_standard_numbers(text):
    with pytest.raises(ParseError):
        parse_json(text)


@pytest.fixture
def sanitizer():
    return ResponseSanitizer()


def _request(artifact_type, parameters):
    return RequestNormalizer().normalize(artifact_type, "res-1", "user-1", parameters)


# ----------------------------------------------------------------------
# Study plans


def test_study_plan_accepts_fenced_payload(sanitizer):
    request = _request(ArtifactType.STUDY_PLAN, STUDY_PLAN_PARAMS)
    result = sanitizer.sanitize(f"```json\n{study_plan_json(4)}\n```", request)

    assert len(result.payload["weeks"]) == 4
    assert result.payload["total_weeks"] == 4
    assert result.warnings == []


def test_study_plan_truncates_extra_weeks(sanitizer):
    request = _request(ArtifactType.STUDY_PLAN, STUDY_PLAN_PARAMS)
    result = sanitizer.sanitize(study_plan_json(6), request)

    assert [w["week"] for w in result.payload["weeks"]] == [1, 2, 3, 4]
    assert result.payload["total_weeks"] == 4


def test_study_plan_fills_missing_fields(sanitizer):
    request = _request(ArtifactType.STUDY_PLAN, {**STUDY_PLAN_PARAMS, "weeks": 2})
    raw = json.dumps({"title": "Plan", "estimatedHoursPerWeek": "about 7 hours", "weeks": [{}, {"title": "Loops"}]})
    payload = sanitizer.sanitize(raw, request).payload

    assert payload["description"] == ""
    assert payload["estimated_hours_per_week"] == 7
    assert payload["weeks"][0] == {
        "week": 1, "title": "Week 1", "tasks": [], "objectives": [], "resources": []
    }
    assert payload["weeks"][1]["title"] == "Loops"
    assert payload["weeks"][1]["week"] == 2


def test_study_plan_short_result_is_flagged(sanitizer):
    request = _request(ArtifactType.STUDY_PLAN, STUDY_PLAN_PARAMS)
    result = sanitizer.sanitize(study_plan_json(2), request)

    assert len(result.payload["weeks"]) == 2
    assert result.warnings == ["Expected 4 weeks, provider returned 2"]


@pytest.mark.parametrize("raw", [
    "[]",
    '{"weeks": [{"week": 1}]}',
    '{"title": "Plan"}',
    '{"title": "Plan", "weeks": []}',
    '{"title": "Plan", "weeks": ["week one"]}',
])
def test_study_plan_malformed_shapes(sanitizer, raw):
    request = _request(ArtifactType.STUDY_PLAN, STUDY_PLAN_PARAMS)
    with pytest.raises(ParseError):
        sanitizer.sanitize(raw, request)


# ----------------------------------------------------------------------
# Flashcards


def test_flashcards_truncate_twenty_to_fifteen(sanitizer):
    request = _request(ArtifactType.FLASHCARDS, {"count": 15})
    result = sanitizer.sanitize(flashcards_json(20), request)

    assert len(result.payload["cards"]) == 15
    assert result.payload["count"] == 15
    assert result.warnings == []


def test_flashcards_fill_optional_fields(sanitizer):
    request = _request(ArtifactType.FLASHCARDS, {"count": 1})
    raw = '[{"question": "What is H2O?", "answer": "Water", "questionType": "OPEN"}]'
    card = sanitizer.sanitize(raw, request).payload["cards"][0]

    assert card == {
        "question": "What is H2O?",
        "answer": "Water",
        "difficulty": "",
        "question_type": "open",
        "options": [],
        "tags": [],
    }


@pytest.mark.parametrize("raw", [
    '{"cards": []}',
    "[]",
    '[{"question": "Q?"}]',
    '[{"question": "", "answer": "A"}]',
    '["just a string"]',
])
def test_flashcards_malformed_shapes(sanitizer, raw):
    request = _request(ArtifactType.FLASHCARDS, FLASHCARD_PARAMS)
    with pytest.raises(ParseError):
        sanitizer.sanitize(raw, request)


# ----------------------------------------------------------------------
# Mind maps


def test_mind_map_accepts_graph(sanitizer):
    request = _request(ArtifactType.MIND_MAP, MIND_MAP_PARAMS)
    payload = sanitizer.sanitize(mind_map_json(3), request).payload

    assert [n["id"] for n in payload["nodes"]] == ["week-0", "week-1", "week-2"]
    assert payload["estimated_total_hours"] == 12
    assert payload["connections"][0] == {"from": "week-0", "to": "week-1", "type": "progression"}


def test_mind_map_normalizes_loose_output(sanitizer):
    request = _request(ArtifactType.MIND_MAP, MIND_MAP_PARAMS)
    raw = json.dumps({
        "nodes": [
            {"id": "a", "label": "Basics", "estimatedHours": 2},
            {"id": "a", "title": "Loops"},
            {"title": "Functions"},
        ],
        "connections": [
            {"source": "a", "target": "a-1"},
            {"from": "a", "to": "missing"},
            "not an edge",
        ],
    })
    payload = sanitizer.sanitize(raw, request).payload

    assert payload["title"] == "Intro to Python"
    assert [n["id"] for n in payload["nodes"]] == ["a", "a-1", "week-2"]
    assert payload["nodes"][0]["title"] == "Basics"
    assert payload["nodes"][1]["tasks"] == []
    assert payload["connections"] == [{"from": "a", "to": "a-1", "type": ""}]
    assert "Week 01: Basics" in payload["text"]
    assert "Week 03: Functions" in payload["text"]


def test_mind_map_keeps_provider_text(sanitizer):
    request = _request(ArtifactType.MIND_MAP, MIND_MAP_PARAMS)
    payload = sanitizer.sanitize(mind_map_json(3), request).payload

    assert payload["text"] == "tree"


def test_mind_map_node_without_title_rejected(sanitizer):
    request = _request(ArtifactType.MIND_MAP, MIND_MAP_PARAMS)
    with pytest.raises(ParseError):
        sanitizer.sanitize('{"nodes": [{"id": "week-0"}]}', request)
