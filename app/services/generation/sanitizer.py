"""
ResponseSanitizer – turns raw provider text into a schema-valid payload.

Stages:
    1. strip_envelope  – remove wrapping around the JSON body (code fences,
       reasoning blocks, chatter before/after the JSON).
    2. parse_json      – decode, with one repair pass for trailing commas.
    3. per-type shape check, count reconciliation and default filling.

Anything malformed raises ParseError, which the provider chain treats as a
failure of that provider.
"""
from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ValidationError as SchemaError

from app.core.exceptions import ParseError
from app.models.artifacts import (
    FlashcardDeck,
    MindMapContent,
    StudyPlanContent,
    dump_payload,
)
from app.services.generation.fallback import render_text_mind_map
from app.services.generation.types import ArtifactType, GenerationRequest, SanitizedPayload


_THINK_BLOCK = re.compile(r"<think(?:ing)?>.*?</think(?:ing)?>", re.DOTALL | re.IGNORECASE)
_THINK_CLOSE = re.compile(r"</think(?:ing)?>", re.IGNORECASE)
_FENCED_BODY = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\r?\n?(.*?)\r?\n?[ \t]*```", re.DOTALL)
_OPEN_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_CLOSE_FENCE = re.compile(r"\r?\n?[ \t]*```$")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_OPENER = re.compile(r"[{\[]")
_DECODER = json.JSONDecoder()


def strip_envelope(raw: str) -> str:
    """Return the JSON body of a provider response without its wrapping"""
    text = raw.replace("\ufeff", "").strip()

    # reasoning models emit their chain of thought before the answer
    text = _THINK_BLOCK.sub("", text)
    parts = _THINK_CLOSE.split(text)
    text = parts[-1].strip()

    fenced = _FENCED_BODY.search(text)
    if fenced:
        text = fenced.group(1).strip()
    else:
        # truncated output can leave an unterminated fence
        text = _CLOSE_FENCE.sub("", _OPEN_FENCE.sub("", text)).strip()

    starts = [match.start() for match in _OPENER.finditer(text)]
    if not starts:
        return text

    # prose around the body may contain brackets of its own, so keep the
    # longest span that decodes on its own
    best = None
    covered = -1
    for start in starts:
        if start < covered:
            continue
        end = _decoded_end(text, start)
        if end is None:
            continue
        covered = end
        if best is None or end - start > best[1] - best[0]:
            best = (start, end)
    if best:
        return text[best[0]:best[1]]

    # nothing decodes as is; hand parse_json the widest slice to repair
    start = starts[0]
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer)
    if end <= start:
        return text[start:]
    return text[start:end + 1]


def _decoded_end(text: str, start: int) -> Optional[int]:
    """End offset of the JSON value opening at start, if one decodes there"""
    try:
        return _DECODER.raw_decode(text, start)[1]
    except json.JSONDecodeError:
        pass
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer) + 1
    if end <= start:
        return None
    try:
        json.loads(_TRAILING_COMMA.sub(r"\1", text[start:end]))
    except json.JSONDecodeError:
        return None
    return end


def _reject_constant(name: str) -> Any:
    raise ParseError(f"Provider response contains non-standard number {name}")


def parse_json(text: str) -> Any:
    """Decode JSON, retrying once with trailing commas removed"""
    if not text:
        raise ParseError("Provider response is empty after stripping its envelope")
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as first_error:
        try:
            return json.loads(_TRAILING_COMMA.sub(r"\1", text), parse_constant=_reject_constant)
        except json.JSONDecodeError:
            raise ParseError(f"Provider response is not valid JSON: {first_error}") from first_error


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [item for item in (_text(v) for v in value) if item]


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if isinstance(value, str):
        match = re.search(r"\d+", value)
        return int(match.group()) if match else 0
    return 0


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


class ResponseSanitizer:
    """Validate and normalize provider output for each artifact type"""

    def sanitize(self, raw_content: str, request: GenerationRequest) -> SanitizedPayload:
        data = parse_json(strip_envelope(raw_content))
        handlers = {
            ArtifactType.STUDY_PLAN: self._study_plan,
            ArtifactType.FLASHCARDS: self._flashcards,
            ArtifactType.MIND_MAP: self._mind_map,
        }
        warnings: List[str] = []
        payload = handlers[request.artifact_type](data, request, warnings)
        return SanitizedPayload(payload=payload, warnings=warnings)

    # ------------------------------------------------------------------

    def _study_plan(self, data: Any, request: GenerationRequest, warnings: List[str]) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ParseError("Study plan must be a JSON object")
        title = _text(data.get("title"))
        if not title:
            raise ParseError("Study plan is missing its title")
        weeks = self._items(data.get("weeks"), "weeks")
        weeks = self._reconcile(weeks, request.expected_count(), "weeks", warnings)

        normalized_weeks = []
        for index, week in enumerate(weeks):
            if not isinstance(week, dict):
                raise ParseError(f"weeks[{index}] is not an object")
            number = _int(week.get("week")) or index + 1
            normalized_weeks.append({
                "week": number,
                "title": _text(week.get("title")) or f"Week {number}",
                "tasks": _str_list(week.get("tasks")),
                "objectives": _str_list(week.get("objectives")),
                "resources": _str_list(week.get("resources")),
            })

        candidate = {
            "title": title,
            "description": _text(data.get("description")),
            "total_weeks": len(normalized_weeks),
            "estimated_hours_per_week": _int(
                _first(data, "estimated_hours_per_week", "estimatedHoursPerWeek")
            ),
            "weeks": normalized_weeks,
        }
        return self._validate(StudyPlanContent, candidate)

    def _flashcards(self, data: Any, request: GenerationRequest, warnings: List[str]) -> Dict[str, Any]:
        if not isinstance(data, list):
            raise ParseError("Flashcards must be a JSON array")
        cards = self._items(data, "flashcards")
        cards = self._reconcile(cards, request.expected_count(), "flashcards", warnings)

        normalized_cards = []
        for index, card in enumerate(cards):
            if not isinstance(card, dict):
                raise ParseError(f"flashcards[{index}] is not an object")
            question = _text(card.get("question"))
            answer = _text(card.get("answer"))
            if not question or not answer:
                raise ParseError(f"flashcards[{index}] is missing its question or answer")
            normalized_cards.append({
                "question": question,
                "answer": answer,
                "difficulty": _text(card.get("difficulty")).lower(),
                "question_type": _text(_first(card, "question_type", "questionType")).lower(),
                "options": _str_list(card.get("options")),
                "tags": _str_list(card.get("tags")),
            })

        return self._validate(FlashcardDeck, {"cards": normalized_cards, "count": len(normalized_cards)})

    def _mind_map(self, data: Any, request: GenerationRequest, warnings: List[str]) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ParseError("Mind map must be a JSON object")
        nodes = self._items(data.get("nodes"), "nodes")
        nodes = self._reconcile(nodes, request.expected_count(), "nodes", warnings)

        seen_ids = set()
        normalized_nodes = []
        for index, node in enumerate(nodes):
            if not isinstance(node, dict):
                raise ParseError(f"nodes[{index}] is not an object")
            title = _text(_first(node, "title", "label"))
            if not title:
                raise ParseError(f"nodes[{index}] is missing its title")
            node_id = _text(node.get("id")) or f"week-{index}"
            if node_id in seen_ids:
                node_id = f"{node_id}-{index}"
            seen_ids.add(node_id)
            normalized_nodes.append({
                "id": node_id,
                "title": title,
                "description": _text(node.get("description")),
                "difficulty": _text(node.get("difficulty")).lower(),
                "learning_type": _text(_first(node, "learning_type", "learningType")),
                "estimated_hours": _int(_first(node, "estimated_hours", "estimatedHours")),
                "tasks": _str_list(node.get("tasks")),
                "prerequisites": _str_list(node.get("prerequisites")),
                "outcomes": _str_list(node.get("outcomes")),
                "resources": _str_list(node.get("resources")),
            })

        connections = []
        raw_connections = data.get("connections")
        if isinstance(raw_connections, list):
            for connection in raw_connections:
                if not isinstance(connection, dict):
                    continue
                source = _text(_first(connection, "from", "source"))
                target = _text(_first(connection, "to", "target"))
                if source and target:
                    connections.append({
                        "from": source,
                        "to": target,
                        "type": _text(connection.get("type")),
                    })

        title = _text(data.get("title")) or request.parameters["title"]
        text = data.get("text")
        text = text.strip("\n") if isinstance(text, str) else ""
        if not text.strip():
            text = render_text_mind_map(title, normalized_nodes)
        candidate = {
            "title": title,
            "text": text,
            "total_weeks": len(normalized_nodes),
            "estimated_total_hours": _int(
                _first(data, "estimated_total_hours", "estimatedTotalHours")
            ) or sum(node["estimated_hours"] for node in normalized_nodes),
            "nodes": normalized_nodes,
            "connections": connections,
        }
        return self._validate(MindMapContent, candidate)

    # ------------------------------------------------------------------

    @staticmethod
    def _items(value: Any, label: str) -> List[Any]:
        if not isinstance(value, list):
            raise ParseError(f"'{label}' must be a list")
        if not value:
            raise ParseError(f"'{label}' is empty")
        return value

    @staticmethod
    def _reconcile(items: List[Any], expected: int, label: str, warnings: List[str]) -> List[Any]:
        """Truncate surplus items, accept short results with a warning"""
        if len(items) > expected:
            logger.info(f"✂️ Truncating {label} from {len(items)} to {expected}")
            return items[:expected]
        if len(items) < expected:
            message = f"Expected {expected} {label}, provider returned {len(items)}"
            logger.warning(f"⚠️ {message}")
            warnings.append(message)
        return items

    @staticmethod
    def _validate(schema: type[BaseModel], candidate: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return dump_payload(schema.model_validate(candidate))
        except SchemaError as error:
            raise ParseError(f"Payload failed schema validation: {error}") from error
