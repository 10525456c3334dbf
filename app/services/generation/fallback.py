"""
FallbackSynthesizer – deterministic artifacts for when every provider failed.

Output depends on the request parameters only: no network, no clock, no
randomness. Payloads go through the same schemas as sanitized provider
output.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List

from loguru import logger

from app.models.artifacts import FlashcardDeck, MindMapContent, StudyPlanContent, dump_payload
from app.services.generation.types import ArtifactType, GenerationRequest


WEEKLY_TASKS = [
    "Review course materials and take notes",
    "Complete assigned readings",
    "Practice exercises and problems",
    "Review previous week's concepts",
    "Prepare for upcoming topics",
]

WEEKLY_OBJECTIVES = [
    "Understand key concepts",
    "Apply theoretical knowledge",
    "Complete practical exercises",
    "Review and reinforce learning",
]

WEEKLY_RESOURCES = [
    "Course textbook and materials",
    "Online tutorials and videos",
    "Practice problems and exercises",
    "Study groups and forums",
]

CARD_DIFFICULTIES = ["easy", "medium", "hard"]
NODE_DIFFICULTIES = ["easy", "medium", "hard"]
LEARNING_TYPES = ["foundation", "building", "application", "mastery"]
NODE_HOURS = [3, 4, 5, 6, 7, 8, 9, 10]

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_WORD = re.compile(r"[A-Za-z][A-Za-z-]{4,}")


class FallbackSynthesizer:
    """Build a schema-valid artifact from request parameters alone"""

    def synthesize(self, request: GenerationRequest) -> Dict[str, Any]:
        builders = {
            ArtifactType.STUDY_PLAN: self.study_plan,
            ArtifactType.FLASHCARDS: self.flashcards,
            ArtifactType.MIND_MAP: self.mind_map,
        }
        payload = builders[request.artifact_type](request.parameters)
        logger.info(f"🛟 Synthesized fallback {request.artifact_type.value} for {request.resource_id}")
        return payload

    # ------------------------------------------------------------------
    # Study plan

    def study_plan(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        weeks = parameters["weeks"]
        course_name = parameters.get("course_name") or "Course"

        plan_weeks = []
        for number in range(1, weeks + 1):
            if number <= weeks / 3:
                phase, opener = "Foundation & Basics", "Establish study routine and goals"
            elif number <= 2 * weeks / 3:
                phase, opener = "Application & Practice", "Work on intermediate concepts and applications"
            else:
                phase, opener = "Advanced Topics & Review", "Focus on advanced topics and exam preparation"
            plan_weeks.append({
                "week": number,
                "title": f"Week {number}: {phase}",
                "tasks": [opener] + WEEKLY_TASKS,
                "objectives": list(WEEKLY_OBJECTIVES),
                "resources": list(WEEKLY_RESOURCES),
            })

        if weeks <= 4:
            hours = 15
        elif weeks <= 8:
            hours = 10
        else:
            hours = 8

        plan = StudyPlanContent(
            title=f"{course_name} Study Plan",
            description=(
                f"A {weeks}-week structured study plan for {course_name}. "
                "This plan was generated automatically when AI services were unavailable."
            ),
            total_weeks=weeks,
            estimated_hours_per_week=hours,
            weeks=plan_weeks,
        )
        return dump_payload(plan)

    # ------------------------------------------------------------------
    # Flashcards

    def flashcards(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        count = parameters["count"]
        question_types = parameters["question_types"]
        name = parameters.get("document_name") or "the material"
        topics = parameters.get("focus_areas") or [name]
        sentences = _sentences(parameters.get("content") or "")

        cards = []
        for index in range(count):
            question_type = question_types[index % len(question_types)]
            if parameters["difficulty"] == "mixed":
                difficulty = CARD_DIFFICULTIES[index % len(CARD_DIFFICULTIES)]
            else:
                difficulty = parameters["difficulty"]
            if sentences:
                card = _card_from_sentence(index, sentences, question_type, name)
            else:
                card = _card_from_topic(index, topics[index % len(topics)], question_type)
            card.setdefault("question_type", question_type)
            card.update({
                "difficulty": difficulty,
                "tags": ["review", card["question_type"].replace("_", "-")],
            })
            cards.append(card)

        return dump_payload(FlashcardDeck(cards=cards, count=len(cards)))

    # ------------------------------------------------------------------
    # Mind map

    def mind_map(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        title = parameters["title"]
        weeks = parameters["weeks"]

        nodes = []
        for index, week in enumerate(weeks):
            week_title = week.get("title") or f"Week {index + 1}"
            nodes.append({
                "id": f"week-{index}",
                "title": week_title,
                "description": f"Learning objectives for week {index + 1}",
                "difficulty": NODE_DIFFICULTIES[min(index // 2, 2)],
                "learning_type": LEARNING_TYPES[index % len(LEARNING_TYPES)],
                "estimated_hours": NODE_HOURS[min(index, len(NODE_HOURS) - 1)],
                "tasks": week.get("tasks") or [
                    f"Complete {week_title}",
                    "Review and practice concepts",
                    "Take assessments",
                ],
                "prerequisites": [f"week-{index - 1}"] if index > 0 else [],
                "outcomes": [
                    "Enhanced understanding",
                    "Practical application skills",
                    "Progress milestone achieved",
                ],
                "resources": ["Study materials", "Practice exercises", "Assessment tools"],
            })

        connections = [
            {"from": f"week-{index}", "to": f"week-{index + 1}", "type": "progression"}
            for index in range(len(weeks) - 1)
        ]

        mind_map = MindMapContent(
            title=title,
            text=render_text_mind_map(title, weeks),
            total_weeks=len(weeks),
            estimated_total_hours=sum(node["estimated_hours"] for node in nodes),
            nodes=nodes,
            connections=connections,
        )
        return dump_payload(mind_map)


def _sentences(content: str) -> List[str]:
    sentences = []
    for sentence in _SENTENCE_SPLIT.split(" ".join(content.split())):
        sentence = sentence.strip()
        if len(sentence) >= 20:
            sentences.append(sentence[:200])
    return sentences


def _card_from_sentence(index: int, sentences: List[str], question_type: str, name: str) -> Dict[str, Any]:
    sentence = sentences[index % len(sentences)]

    if question_type == "fill_blank":
        words = _WORD.findall(sentence)
        if words:
            answer = max(words, key=len)
            return {
                "question": "Fill in the blank: " + sentence.replace(answer, "_____", 1),
                "answer": answer,
                "options": [],
            }
        return {
            "question": f"Explain the following point from {name}: \"{sentence}\"",
            "answer": sentence,
            "question_type": "open",
            "options": [],
        }

    if question_type == "multiple_choice":
        distractors = [s for s in sentences if s != sentence][:3]
        generic = [
            "None of the statements covered in the material",
            "A claim that contradicts the material",
            "An unrelated definition",
        ]
        distractors += generic[: 3 - len(distractors)]
        options = list(distractors)
        options.insert(index % 4, sentence)
        return {
            "question": f"Which of the following statements appears in {name}?",
            "answer": sentence,
            "options": options,
        }

    return {
        "question": f"Explain the following point from {name}: \"{sentence}\"",
        "answer": sentence,
        "options": [],
    }


def _card_from_topic(index: int, topic: str, question_type: str) -> Dict[str, Any]:
    if question_type == "multiple_choice":
        options = [
            f"Define {topic} and relate it to examples",
            f"Skip {topic} entirely",
            f"Memorize {topic} without context",
            f"Read about {topic} only once",
        ]
        answer = options[0]
        options.insert(index % 4, options.pop(0))
        return {
            "question": f"What is the most effective way to review {topic}?",
            "answer": answer,
            "options": options,
        }
    if question_type == "fill_blank":
        return {
            "question": f"The key concept number {index + 1} of {topic} is _____.",
            "answer": f"Review your notes on {topic} to recall concept {index + 1}.",
            "options": [],
        }
    return {
        "question": f"Summarize key concept {index + 1} of {topic} in your own words.",
        "answer": f"Review your notes on {topic} and explain concept {index + 1} with an example.",
        "options": [],
    }


def render_text_mind_map(title: str, weeks: List[Dict[str, Any]]) -> str:
    """Render the week structure as a boxed text tree"""
    center = title if len(title) <= 60 else title[:57] + "..."
    width = max(len(center) + 4, 40)
    left = (width - len(center)) // 2

    lines = [
        "╭" + "─" * width + "╮",
        "│" + " " * left + center + " " * (width - len(center) - left) + "│",
        "╰" + "─" * width + "╯",
        " " * (width // 2) + "│",
    ]

    total = len(weeks)
    for index, week in enumerate(weeks):
        number = index + 1
        last = index == total - 1
        week_title = week.get("title") or f"Week {number}"
        tasks = (week.get("tasks") or [f"Study {week_title}"])[:3]

        if number > -(-total * 3 // 4):
            badge = "EXPERT"
        elif number > -(-total // 2):
            badge = "ADVANCED"
        elif number > -(-total // 4):
            badge = "INTERMEDIATE"
        else:
            badge = "BASIC"

        rail = " " if last else "│"
        lines.append(f"{'╰─' if last else '├─'}●═══> Week {number:02d}: {week_title}")
        lines.append(f"{rail}     ╭─ {badge}")
        for task_index, task in enumerate(tasks):
            branch = "╰──" if task_index == len(tasks) - 1 else "├──"
            lines.append(f"{rail}     {branch} {task}")
        if not last:
            lines.append("│")

    lines.append("")
    lines.append(f"Total Duration: {total} weeks")
    return "\n".join(lines)
