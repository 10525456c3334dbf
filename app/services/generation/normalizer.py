"""
RequestNormalizer – validates incoming generation requests and applies defaults.

Every violation is collected before failing so the caller sees the full list
in one ValidationError. Nothing here touches a provider or a store.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from app.core.exceptions import ValidationError
from app.core.interfaces.artifact_store import ResourceRecord
from app.services.generation.types import ArtifactType, GenerationRequest


MIN_WEEKS = 1
MAX_WEEKS = 52
MIN_SYLLABUS_LENGTH = 10
MIN_FLASHCARDS = 1
MAX_FLASHCARDS = 50
DEFAULT_FLASHCARDS = 15

DIFFICULTIES = ("easy", "medium", "hard", "mixed")
QUESTION_TYPES = ("open", "multiple_choice", "fill_blank")
DEFAULT_QUESTION_TYPES = ["open", "multiple_choice"]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _id_or_none(value: Any) -> Optional[str]:
    if _is_int(value):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class RequestNormalizer:
    """Turn raw request data into a GenerationRequest or raise ValidationError"""

    def normalize(
        self,
        artifact_type: ArtifactType,
        resource_id: Any,
        owner_id: Any,
        parameters: Optional[Mapping[str, Any]] = None,
        force_regenerate: Any = False,
    ) -> GenerationRequest:
        violations: List[str] = []
        parameters = dict(parameters or {})

        clean_resource_id = _id_or_none(resource_id)
        if clean_resource_id is None:
            violations.append("resource_id is required and must be a non-empty string")

        clean_owner_id = _id_or_none(owner_id)
        if clean_owner_id is None:
            violations.append("owner_id is required and must be a non-empty string")

        if not isinstance(force_regenerate, bool):
            violations.append("force_regenerate must be a boolean")

        rules = {
            ArtifactType.STUDY_PLAN: self._study_plan,
            ArtifactType.FLASHCARDS: self._flashcards,
            ArtifactType.MIND_MAP: self._mind_map,
        }
        normalized = rules[ArtifactType(artifact_type)](parameters, violations)

        if violations:
            raise ValidationError(violations)

        return GenerationRequest(
            artifact_type=artifact_type,
            resource_id=clean_resource_id,
            owner_id=clean_owner_id,
            parameters=normalized,
            force_regenerate=force_regenerate,
        )

    def apply_resource(self, request: GenerationRequest, record: ResourceRecord) -> GenerationRequest:
        """Fill blank resource-derived parameters from the owning resource"""
        parameters = dict(request.parameters)
        if request.artifact_type == ArtifactType.STUDY_PLAN:
            if not parameters["course_name"]:
                parameters["course_name"] = record.title
        elif request.artifact_type == ArtifactType.FLASHCARDS:
            if not parameters["document_name"]:
                parameters["document_name"] = record.title
            if not parameters["content"] and record.content:
                parameters["content"] = record.content
        return request.model_copy(update={"parameters": parameters})

    # ------------------------------------------------------------------
    # Per artifact type rules

    def _study_plan(self, params: Dict[str, Any], violations: List[str]) -> Dict[str, Any]:
        self._reject_unknown(params, {"syllabus", "weeks", "custom_prompt", "course_name"}, violations)

        syllabus = params.get("syllabus")
        if not isinstance(syllabus, str) or len(syllabus.strip()) < MIN_SYLLABUS_LENGTH:
            violations.append(
                f"syllabus is required and must be at least {MIN_SYLLABUS_LENGTH} characters"
            )

        weeks = params.get("weeks")
        if not _is_int(weeks) or not MIN_WEEKS <= weeks <= MAX_WEEKS:
            violations.append(f"weeks must be an integer between {MIN_WEEKS} and {MAX_WEEKS}")

        custom_prompt = self._optional_str(params, "custom_prompt", violations)
        course_name = self._optional_str(params, "course_name", violations)

        return {
            "syllabus": syllabus.strip() if isinstance(syllabus, str) else syllabus,
            "weeks": weeks,
            "custom_prompt": custom_prompt,
            "course_name": course_name,
        }

    def _flashcards(self, params: Dict[str, Any], violations: List[str]) -> Dict[str, Any]:
        self._reject_unknown(
            params,
            {"count", "difficulty", "question_types", "focus_areas", "content", "document_name"},
            violations,
        )

        count = params.get("count", DEFAULT_FLASHCARDS)
        if not _is_int(count) or not MIN_FLASHCARDS <= count <= MAX_FLASHCARDS:
            violations.append(
                f"count must be an integer between {MIN_FLASHCARDS} and {MAX_FLASHCARDS}"
            )

        difficulty = params.get("difficulty", "mixed")
        if difficulty not in DIFFICULTIES:
            violations.append(f"difficulty must be one of: {', '.join(DIFFICULTIES)}")

        question_types = params.get("question_types", list(DEFAULT_QUESTION_TYPES))
        if (
            not isinstance(question_types, list)
            or not question_types
            or any(t not in QUESTION_TYPES for t in question_types)
        ):
            violations.append(
                f"question_types must be a non-empty list drawn from: {', '.join(QUESTION_TYPES)}"
            )
        else:
            # keep first occurrence order
            question_types = list(dict.fromkeys(question_types))

        focus_areas = params.get("focus_areas", [])
        if not isinstance(focus_areas, list) or any(not isinstance(a, str) for a in focus_areas):
            violations.append("focus_areas must be a list of strings")
        else:
            focus_areas = [a.strip() for a in focus_areas if a.strip()]

        return {
            "count": count,
            "difficulty": difficulty,
            "question_types": question_types,
            "focus_areas": focus_areas,
            "content": self._optional_str(params, "content", violations),
            "document_name": self._optional_str(params, "document_name", violations),
        }

    def _mind_map(self, params: Dict[str, Any], violations: List[str]) -> Dict[str, Any]:
        self._reject_unknown(params, {"title", "weeks"}, violations)

        title = params.get("title")
        if not isinstance(title, str) or not title.strip():
            violations.append("title is required and must be a non-empty string")

        weeks = params.get("weeks")
        clean_weeks: List[Dict[str, Any]] = []
        if not isinstance(weeks, list) or not MIN_WEEKS <= len(weeks) <= MAX_WEEKS:
            violations.append(f"weeks must be a list of {MIN_WEEKS} to {MAX_WEEKS} entries")
        else:
            for index, week in enumerate(weeks):
                if not isinstance(week, dict):
                    violations.append(f"weeks[{index}] must be an object")
                    continue
                week_title = week.get("title")
                tasks = week.get("tasks", [])
                if week_title is not None and not isinstance(week_title, str):
                    violations.append(f"weeks[{index}].title must be a string")
                if not isinstance(tasks, list):
                    violations.append(f"weeks[{index}].tasks must be a list")
                    tasks = []
                clean_weeks.append({
                    "title": (week_title or "").strip() if isinstance(week_title, str) else "",
                    "tasks": [str(task) for task in tasks if str(task).strip()],
                })

        return {
            "title": title.strip() if isinstance(title, str) else title,
            "weeks": clean_weeks,
        }

    # ------------------------------------------------------------------

    @staticmethod
    def _reject_unknown(params: Dict[str, Any], allowed: set, violations: List[str]) -> None:
        for key in sorted(set(params) - allowed):
            violations.append(f"Unknown parameter: {key}")

    @staticmethod
    def _optional_str(params: Dict[str, Any], key: str, violations: List[str]) -> str:
        value = params.get(key)
        if value is None:
            return ""
        if not isinstance(value, str):
            violations.append(f"{key} must be a string")
            return ""
        return value.strip()
