"""
Task planner: turns one research question into complementary sub-tasks.

The planner makes blocking (non-streamed) model calls. Clarifying-question
generation degrades to an empty list; plan generation raises
``PlanningError`` so the caller can retry without losing its inputs.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from core.errors import PlanningError, error_message
from core.llm import ModelAdapter
from core.types import ResearchTask
from core.utils import extract_json

logger = logging.getLogger(__name__)

MAX_QUESTIONS = 4
MAX_TASKS = 4
MAX_IDEAS = 5
NO_ANSWER = "No answer provided"


def assign_task_index(model_index: int, task_count: int) -> int:
    """Round-robin slot for the model at ``model_index``."""
    if task_count <= 0:
        raise ValueError("task_count must be positive")
    return model_index % task_count


def default_assignments(tasks: Sequence[ResearchTask], models: Sequence[str]) -> Dict[str, List[str]]:
    """
    Distribute models across tasks round-robin by index.

    Every model lands in exactly one task; every task gets at least one
    model when there are at least as many models as tasks.
    """
    assignments: Dict[str, List[str]] = {task.id: [] for task in tasks}
    if not tasks:
        return assignments
    unique_models = list(dict.fromkeys(models))
    for index, model_id in enumerate(unique_models):
        task = tasks[assign_task_index(index, len(tasks))]
        assignments[task.id].append(model_id)
    return assignments


def duplicate_task_ids(tasks: Sequence[ResearchTask]) -> List[str]:
    """Task ids that appear more than once, in first-seen order."""
    seen = set()
    duplicates: List[str] = []
    for task in tasks:
        if task.id in seen and task.id not in duplicates:
            duplicates.append(task.id)
        seen.add(task.id)
    return duplicates


def validate_assignments(
    tasks: Sequence[ResearchTask],
    assignments: Mapping[str, Sequence[str]],
) -> Dict[str, List[str]]:
    """
    Normalize a caller-supplied task -> models mapping.

    The result is keyed in task order. Unknown task ids are dropped and a
    model listed under several tasks keeps only its first one, so model
    identifiers stay unique within a run.

    Raises:
        ValueError: if two tasks share an id.
    """
    duplicates = duplicate_task_ids(tasks)
    if duplicates:
        raise ValueError(f"Duplicate task ids: {', '.join(duplicates)}")

    known = {task.id for task in tasks}
    for task_id in assignments:
        if task_id not in known:
            logger.warning("Ignoring assignment for unknown task '%s'", task_id)

    seen = set()
    normalized: Dict[str, List[str]] = {}
    for task in tasks:
        models = []
        for model_id in assignments.get(task.id, []):
            if model_id in seen:
                logger.warning("Model '%s' assigned to more than one task; keeping first", model_id)
                continue
            seen.add(model_id)
            models.append(model_id)
        normalized[task.id] = models
    return normalized


def _clarifying_prompt(query: str) -> str:
    return f"""You are a research assistant. A user wants to research: "{query}"

Generate 3-4 clarifying questions that would help refine this research query and get better, more targeted results.

Focus on:
- Timeframe (if relevant)
- Specific aspects or focus areas
- Depth vs breadth
- Target audience or use case
- Geographic scope (if relevant)

Return ONLY a JSON array of questions, each as a simple string. Example format:
["Question 1?", "Question 2?", "Question 3?"]

Do not include any other text or explanation."""


def _plan_prompt(query: str, answers: Sequence[str]) -> str:
    context = ""
    if answers:
        context = "\n\nUser provided context:\n" + "\n".join(
            f"{i}. {answer}" for i, answer in enumerate(answers, 1)
        )

    return f"""You are a research strategy expert. Given this research question, create a strategic plan that breaks down the research into 3-4 distinct research tasks that different AI models can work on in parallel.

Research Question: {query}{context}

Create a research plan with 3-4 research tasks. Each task should:
- Focus on a specific angle or aspect of the question
- Be complementary to other tasks (not overlapping)
- Be clearly defined so an AI model knows exactly what to research

Return ONLY a JSON object with this structure:
{{
  "tasks": [
    {{
      "id": "task-1",
      "title": "Brief title (4-6 words)",
      "description": "What this task focuses on (1-2 sentences)",
      "prompt": "The specific research prompt for the AI model"
    }}
  ]
}}

Example for "How do I customize Shopify sites?":
{{
  "tasks": [
    {{
      "id": "task-1",
      "title": "Technical customization approaches",
      "description": "Research the technical methods and tools available for Shopify customization",
      "prompt": "Research and explain the different technical approaches to customizing Shopify sites, including Liquid templating, theme development, and app development. Focus on what's technically possible and the skill levels required."
    }},
    {{
      "id": "task-2",
      "title": "No-code solutions and apps",
      "description": "Explore user-friendly customization options that don't require coding",
      "prompt": "Research no-code and low-code solutions for Shopify customization, including drag-and-drop builders, popular apps, and the Shopify theme editor. Focus on what non-technical users can accomplish."
    }}
  ]
}}

Now create the research plan:"""


def resolve_location_name(
    city: Optional[str] = None,
    country: Optional[str] = None,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
) -> Optional[str]:
    """Human-readable place name from a picked location, or None if nothing was given."""
    if city and country:
        return f"{city}, {country}"
    if country:
        return country
    if lat is not None and lng is not None:
        return f"coordinates ({lat:.2f}, {lng:.2f})"
    return None


def _ideas_prompt(
    location: Optional[str],
    job_title: Optional[str],
    industry: Optional[str],
) -> str:
    personalization = ""
    if location or job_title or industry:
        personalization = "\n\nPersonalization context:"
        if location:
            personalization += f"\n- User is based in: {location}"
        if job_title:
            personalization += f"\n- User's role: {job_title}"
        if industry:
            personalization += f"\n- User's industry: {industry}"
        personalization += (
            "\n\nTailor the research topics to be especially relevant to this user's context."
        )

    return f"""You are helping a professional researcher discover interesting research topics.{personalization}

Generate 5 compelling professional research topics that would be valuable for:
- Financial analysts
- Investors
- Strategy consultants
- Market researchers
- Business intelligence professionals

Each topic should be:
1. Specific and actionable (not vague)
2. Tied to current business/market/competitive intelligence trends
3. Based on real emerging trends, technologies, or market shifts
4. Something that would provide strategic insights
5. Timely and relevant

Format: Return ONLY a JSON array of strings, no other text. Example:
["Deep dive into AI chip market consolidation and supply chain shifts", "Analysis of subscription fatigue impact on SaaS valuations"]"""


def parse_plan(text: str) -> List[ResearchTask]:
    """
    Parse a planner reply into tasks.

    Raises:
        PlanningError: when the reply has no usable task list.
    """
    try:
        data = extract_json(text, "{")
    except ValueError as e:
        raise PlanningError("Failed to parse research plan") from e

    raw_tasks = data.get("tasks")
    if not isinstance(raw_tasks, list) or not raw_tasks:
        raise PlanningError("Research plan contained no tasks")

    if len(raw_tasks) > MAX_TASKS:
        logger.info("Planner returned %d tasks; keeping the first %d", len(raw_tasks), MAX_TASKS)
        raw_tasks = raw_tasks[:MAX_TASKS]

    tasks: List[ResearchTask] = []
    seen_ids = set()
    for index, raw in enumerate(raw_tasks):
        if not isinstance(raw, dict):
            raise PlanningError(f"Task {index + 1} is not an object")
        try:
            task = ResearchTask.from_dict(raw, index)
        except ValueError as e:
            raise PlanningError(f"Task {index + 1} is invalid: {e}") from e
        if task.id in seen_ids:
            number = index + 1
            while f"task-{number}" in seen_ids:
                number += 1
            task = ResearchTask(
                id=f"task-{number}",
                title=task.title,
                description=task.description,
                prompt=task.prompt,
            )
        seen_ids.add(task.id)
        tasks.append(task)
    return tasks


def parse_string_list(text: str, limit: int, min_length: int = 0) -> List[str]:
    """Parse a JSON array of strings out of a reply, falling back to one item per line."""
    try:
        items = extract_json(text, "[")
    except ValueError:
        items = [
            line.strip().lstrip("-•*").strip().strip("\"'").strip()
            for line in (text or "").splitlines()
        ]
    strings = [str(item).strip() for item in items if isinstance(item, (str, int, float))]
    return [s for s in strings if s and len(s) >= min_length][:limit]


class TaskPlanner:
    """Blocking planner calls against one designated model."""

    def __init__(self, adapter: ModelAdapter, model: str):
        self.adapter = adapter
        self.model = model

    async def generate_clarifying_questions(self, query: str) -> List[str]:
        """3-4 clarifying questions, or ``[]`` if anything goes wrong."""
        try:
            text = await self.adapter.complete(self.model, _clarifying_prompt(query))
            questions = extract_json(text, "[")
        except Exception as e:
            logger.warning("Error generating questions: %s", error_message(e))
            return []
        return [q.strip() for q in questions if isinstance(q, str) and q.strip()][:MAX_QUESTIONS]

    async def generate_research_plan(self, query: str, answers: Sequence[str] = ()) -> List[ResearchTask]:
        """
        Break ``query`` into complementary research tasks.

        Blank answers are passed through as "No answer provided".

        Raises:
            PlanningError: if the model call fails or its output cannot be parsed.
        """
        normalized = [a.strip() if a and a.strip() else NO_ANSWER for a in answers]
        try:
            text = await self.adapter.complete(self.model, _plan_prompt(query, normalized))
        except Exception as e:
            logger.error("Error generating research plan: %s", error_message(e))
            raise PlanningError("Failed to generate research plan") from e

        tasks = parse_plan(text)
        logger.info("Research plan for %r has %d tasks", query, len(tasks))
        return tasks

    async def generate_ideas(
        self,
        location: Optional[str] = None,
        job_title: Optional[str] = None,
        industry: Optional[str] = None,
    ) -> List[str]:
        """Suggest research topics, optionally tailored to the user.

        Raises:
            PlanningError: if the model call fails.
        """
        try:
            text = await self.adapter.complete(
                self.model, _ideas_prompt(location, job_title, industry)
            )
        except Exception as e:
            logger.error("Error generating ideas: %s", error_message(e))
            raise PlanningError("Failed to generate ideas") from e
        return parse_string_list(text, MAX_IDEAS, min_length=10)
