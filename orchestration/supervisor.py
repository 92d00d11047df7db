import logging
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence

from core.events import DONE, SEARCH_COMPLETE, SEARCH_STARTED, Event, EventChannel, stream_run
from core.llm import ModelAdapter
from core.models import DEFAULT_MODELS, DEFAULT_PLANNER_MODEL, DEFAULT_SYNTHESIS_MODEL
from core.search import WebSearch
from core.types import AggregateResult, ResearchTask, WebContext

from .fanout import FanOutOrchestrator, ModelJob
from .planner import TaskPlanner, validate_assignments
from .synthesis import SynthesisStage, build_synthesis_prompt, build_task_synthesis_prompt

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Everything a finished run produced, in the shape persistence expects."""
    query: str
    responses: List[AggregateResult] = field(default_factory=list)
    synthesis: Optional[str] = None
    execution_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "responses": [r.to_dict() for r in self.responses],
            "synthesis": self.synthesis,
            "execution_time_ms": self.execution_time_ms,
        }


class ResearchSupervisor:
    """
    Coordinates a research run end to end.

    Responsibilities:
    - Fetch shared web context once per run
    - Fan the prompt (or per-task prompts) out to every model
    - Join on all models, then stream the synthesis
    - Always finish the event stream with ``done``

    All inputs are explicit arguments; nothing is read from ambient state.
    """

    def __init__(
        self,
        adapter: ModelAdapter,
        search: Optional[WebSearch] = None,
        synthesis_model: str = DEFAULT_SYNTHESIS_MODEL,
        planner_model: str = DEFAULT_PLANNER_MODEL,
        timeout_seconds: Optional[float] = 120,
        default_models: Optional[Sequence[str]] = None,
    ):
        self.adapter = adapter
        self.search = search
        self.default_models = list(default_models if default_models is not None else DEFAULT_MODELS)
        self.fanout = FanOutOrchestrator(adapter, timeout_seconds=timeout_seconds)
        self.synthesis = SynthesisStage(adapter, synthesis_model, timeout_seconds=timeout_seconds)
        self.planner = TaskPlanner(adapter, planner_model)

    async def _fetch_context(self, query: str, channel: EventChannel) -> Optional[WebContext]:
        channel.emit(SEARCH_STARTED, {})
        context = None
        if self.search is not None:
            try:
                context = await self.search.search(query)
            except Exception as e:
                logger.warning("Web search failed; continuing without it: %s", e)
        has_results = bool(context and context.has_results)
        channel.emit(SEARCH_COMPLETE, {"hasResults": has_results})
        return context if has_results else None

    async def run_query(
        self,
        prompt: str,
        models: Optional[Sequence[str]],
        channel: EventChannel,
    ) -> RunResult:
        """
        Flat fan-out/fan-in over one prompt, then synthesis.

        ``models=None`` uses the default set; an empty list runs no models
        and still synthesizes and emits ``done``.
        """
        start_time = time.time()
        model_ids = list(self.default_models if models is None else models)
        try:
            context = await self._fetch_context(prompt, channel)
            enhanced = prompt + context.format_block() if context else prompt

            jobs = [ModelJob(model_id=m, prompt=enhanced) for m in model_ids]
            responses = await self.fanout.dispatch(jobs, channel)

            synthesis = await self.synthesis.run(build_synthesis_prompt(prompt, responses), channel)
            channel.emit(DONE, {})
        finally:
            channel.close()

        return RunResult(
            query=prompt,
            responses=responses,
            synthesis=synthesis,
            execution_time_ms=int((time.time() - start_time) * 1000),
        )

    async def run_task_query(
        self,
        tasks: Sequence[ResearchTask],
        task_assignments: Mapping[str, Sequence[str]],
        original_query: str,
        channel: EventChannel,
    ) -> RunResult:
        """
        Per-task fan-out/fan-in with cross-task synthesis.

        Every assigned model across every task runs in one concurrent pool.
        Web context is fetched once for ``original_query`` and appended to
        each task's prompt. Responses come back grouped by task, in task
        order, then in assignment order.

        Raises:
            ValueError: if two tasks share an id. Nothing is emitted and the
                channel is closed.
        """
        start_time = time.time()
        try:
            assignments = validate_assignments(tasks, task_assignments)
            context = await self._fetch_context(original_query, channel)
            web_block = context.format_block() if context else ""

            jobs = [
                ModelJob(model_id=model_id, prompt=task.prompt + web_block, group=task.id)
                for task in tasks
                for model_id in assignments[task.id]
            ]
            responses = await self.fanout.dispatch(jobs, channel)

            results_by_task: Dict[str, List[AggregateResult]] = {task.id: [] for task in tasks}
            for job, result in zip(jobs, responses):
                results_by_task[job.group].append(result)

            prompt = build_task_synthesis_prompt(original_query, tasks, results_by_task)
            synthesis = await self.synthesis.run(prompt, channel)
            channel.emit(DONE, {})
        finally:
            channel.close()

        return RunResult(
            query=original_query,
            responses=responses,
            synthesis=synthesis,
            execution_time_ms=int((time.time() - start_time) * 1000),
        )

    def stream_query(self, prompt: str, models: Optional[Sequence[str]] = None) -> AsyncIterator[Event]:
        return stream_run(lambda channel: self.run_query(prompt, models, channel))

    def stream_task_query(
        self,
        tasks: Sequence[ResearchTask],
        task_assignments: Mapping[str, Sequence[str]],
        original_query: str,
    ) -> AsyncIterator[Event]:
        return stream_run(
            lambda channel: self.run_task_query(tasks, task_assignments, original_query, channel)
        )

    async def generate_clarifying_questions(self, query: str) -> List[str]:
        return await self.planner.generate_clarifying_questions(query)

    async def generate_research_plan(self, query: str, answers: Sequence[str] = ()) -> List[ResearchTask]:
        return await self.planner.generate_research_plan(query, answers)

    async def generate_ideas(self, **personalization: Optional[str]) -> List[str]:
        return await self.planner.generate_ideas(**personalization)
