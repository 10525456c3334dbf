"""
Prompt construction for each artifact type
"""
from __future__ import annotations

from typing import Any, Dict

from app.core.interfaces.text_provider import Prompt
from app.services.generation.types import ArtifactType, GenerationRequest


MAX_CONTENT_CHARS = 2000

STUDY_PLAN_SYSTEM = (
    "You are an expert educational consultant who creates detailed, practical study plans. "
    "Always respond with valid JSON only, no additional text or formatting."
)

FLASHCARD_SYSTEM = (
    "You are an expert educator creating study flashcards. "
    "Always respond with valid JSON only, no additional text."
)

MIND_MAP_SYSTEM = (
    "You are an expert learning designer who turns study plans into mind maps. "
    "Always respond with valid JSON only, no additional text."
)

DIFFICULTY_INSTRUCTIONS = {
    "easy": "Create simple, straightforward questions focusing on basic facts and definitions.",
    "medium": "Create moderately challenging questions that require understanding and application.",
    "hard": "Create complex questions that require analysis, synthesis, and critical thinking.",
    "mixed": "Create a mix of easy, medium, and hard questions.",
}

TYPE_INSTRUCTIONS = {
    "multiple_choice": "Include multiple choice questions with 4 options each.",
    "fill_blank": "Include fill-in-the-blank questions.",
    "open": "Include open-ended questions.",
}


class PromptBuilder:
    """Build the provider prompt for a validated request"""

    def __init__(self, temperature: float = 0.5, max_tokens: int = 3500):
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build(self, request: GenerationRequest) -> Prompt:
        builders = {
            ArtifactType.STUDY_PLAN: (STUDY_PLAN_SYSTEM, self._study_plan),
            ArtifactType.FLASHCARDS: (FLASHCARD_SYSTEM, self._flashcards),
            ArtifactType.MIND_MAP: (MIND_MAP_SYSTEM, self._mind_map),
        }
        system, builder = builders[request.artifact_type]
        return Prompt(
            system=system,
            user=builder(request.parameters),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    def _study_plan(self, params: Dict[str, Any]) -> str:
        weeks = params["weeks"]
        course_name = params["course_name"] or "this course"
        extra = f"Additional Requirements: {params['custom_prompt']}\n" if params["custom_prompt"] else ""
        return f"""Create a comprehensive {weeks}-week study plan for the course "{course_name}".

Course Syllabus/Content:
{params['syllabus']}

{extra}
Please create a detailed study plan that:
1. Breaks down the content into {weeks} manageable weekly segments
2. Includes 3-5 specific, actionable tasks per week
3. Progresses logically from basic to advanced concepts
4. Includes review and assessment periods
5. Provides realistic time estimates

Return the response as a valid JSON object with this exact structure:
{{
  "title": "Descriptive title for the study plan",
  "description": "Brief overview of what this plan covers",
  "total_weeks": {weeks},
  "estimated_hours_per_week": 8,
  "weeks": [
    {{
      "week": 1,
      "title": "Week 1 Title",
      "tasks": ["Specific task 1", "Specific task 2", "Specific task 3"],
      "objectives": ["Learning objective 1", "Learning objective 2"],
      "resources": ["Recommended resource 1", "Recommended resource 2"]
    }}
  ]
}}

The "weeks" array must contain exactly {weeks} entries."""

    def _flashcards(self, params: Dict[str, Any]) -> str:
        count = params["count"]
        type_instructions = " ".join(TYPE_INSTRUCTIONS[t] for t in params["question_types"])
        focus = (
            f"Focus particularly on these areas: {', '.join(params['focus_areas'])}."
            if params["focus_areas"] else ""
        )
        content = params["content"][:MAX_CONTENT_CHARS] or f"The document \"{params['document_name']}\"."
        return f"""Create exactly {count} educational flashcards from the following content.

{DIFFICULTY_INSTRUCTIONS[params['difficulty']]}
{type_instructions}
{focus}

Content: {content}

Please respond with a valid JSON array of flashcards in this exact format:
[
  {{
    "question": "Clear, specific question",
    "answer": "Comprehensive but concise answer",
    "difficulty": "easy|medium|hard",
    "question_type": "open|multiple_choice|fill_blank",
    "options": ["option1", "option2", "option3", "option4"],
    "tags": ["tag1", "tag2"]
  }}
]

Requirements:
- For multiple choice questions, include exactly 4 options with the correct answer being one of them
- For fill-in-the-blank questions, use underscores (_____) to indicate blanks
- Include relevant tags for categorization
- Make sure the JSON is valid and properly formatted"""

    def _mind_map(self, params: Dict[str, Any]) -> str:
        weeks = params["weeks"]
        structure = "\n".join(
            f"Week {index + 1}: {week['title'] or f'Week {index + 1}'} - "
            f"{', '.join(week['tasks'][:3]) or 'Study the week topics'}"
            for index, week in enumerate(weeks)
        )
        return f"""Create a mind map for the study plan "{params['title']}".

Weekly Structure:
{structure}

Return a JSON object with this exact structure:
{{
  "title": "{params['title']}",
  "text": "A readable text tree of the mind map using box drawing characters",
  "nodes": [
    {{
      "id": "week-0",
      "title": "Week title",
      "description": "What this week achieves",
      "difficulty": "easy|medium|hard",
      "learning_type": "foundation|building|application|mastery",
      "estimated_hours": 5,
      "tasks": ["Task 1", "Task 2"],
      "prerequisites": [],
      "outcomes": ["Outcome 1"],
      "resources": ["Resource 1"]
    }}
  ],
  "connections": [{{"from": "week-0", "to": "week-1", "type": "progression"}}]
}}

Create exactly {len(weeks)} nodes, one per week, in order, with difficulty increasing over time."""
