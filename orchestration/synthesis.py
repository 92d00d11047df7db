import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from core.errors import ErrorKind, ModelInvocationError, error_message
from core.events import SYNTHESIS_CHUNK, SYNTHESIS_COMPLETE, EventChannel
from core.llm import ModelAdapter
from core.types import AggregateResult, ResearchTask

logger = logging.getLogger(__name__)

NO_COMPARISON_INSTRUCTION = (
    "No model produced a usable answer, so no comparison is possible. "
    "State this clearly, list the errors reported above as caveats, "
    "and do not invent model findings."
)


def _format_response(result: AggregateResult) -> str:
    body = f"Error: {result.error}" if result.error is not None else result.text
    return f"\n**{result.display_name}:**\n{body}\n"


def build_synthesis_prompt(query: str, results: Sequence[AggregateResult]) -> str:
    """Prompt asking the synthesizer to compare and merge independent answers."""
    header = f'You are a research analyst. A user asked: "{query}"\n\n'

    if not results:
        return (
            header
            + "No AI models were queried for this question, so there are no responses "
            "to compare. State that no comparison was possible, then give the best "
            "answer you can on your own, clearly marked as unverified."
        )

    responses = "\n".join(_format_response(r) for r in results)

    if not any(r.succeeded for r in results):
        return (
            header
            + f"All {len(results)} AI models failed with errors:\n{responses}\n"
            + NO_COMPARISON_INSTRUCTION
        )

    return f"""{header}Here are responses from {len(results)} different AI models:

{responses}

Your task:
1. Compare and contrast these responses
2. Identify agreements and disagreements
3. Evaluate the quality and accuracy of each response
4. Synthesize the best possible answer that combines their strengths
5. Highlight any important nuances or caveats, including any models that were unavailable

Provide a comprehensive, well-researched answer."""


def build_task_synthesis_prompt(
    query: str,
    tasks: Sequence[ResearchTask],
    results_by_task: Dict[str, List[AggregateResult]],
) -> str:
    """Prompt that groups each task's responses under its title and focus."""
    sections = []
    for task in tasks:
        task_results = results_by_task.get(task.id, [])
        if task_results:
            responses = "\n".join(_format_response(r) for r in task_results)
        else:
            responses = "\n(No models were assigned to this task.)"
        sections.append(
            f"**Task: {task.title}**\nFocus: {task.description}\n\n"
            f"Models assigned to this task:\n{responses}"
        )

    all_results = [r for rs in results_by_task.values() for r in rs]
    closing = ""
    if not any(r.succeeded for r in all_results):
        closing = f"\n\n{NO_COMPARISON_INSTRUCTION}"

    body = "\n\n".join(sections)
    return f"""You are a research analyst. A user asked: "{query}"

We broke this research into specialized tasks and assigned different AI models to focus on specific aspects:

{body}

Your task:
1. Synthesize the findings from each specialized research task
2. Identify how the different task findings complement each other
3. Note any agreements or disagreements between models on the same task
4. Combine insights to provide a comprehensive answer to the original question
5. Highlight important nuances or caveats

Provide a well-structured, comprehensive answer that draws from all research tasks.{closing}"""


class SynthesisStage:
    """Streams one synthesizer call through the run's channel.

    Failure is non-fatal: it is reported as ``synthesis-complete`` with
    ``text: null`` and ``run`` returns ``None``.
    """

    def __init__(self, adapter: ModelAdapter, model: str, timeout_seconds: Optional[float] = 120):
        self.adapter = adapter
        self.model = model
        self.timeout = timeout_seconds

    async def run(self, prompt: str, channel: EventChannel) -> Optional[str]:
        chunks: List[str] = []
        logger.info("Synthesizing with %s", self.model)

        try:
            if self.timeout:
                await asyncio.wait_for(self._consume(prompt, chunks, channel), timeout=self.timeout)
            else:
                await self._consume(prompt, chunks, channel)
        except asyncio.TimeoutError:
            logger.warning("Synthesis timed out after %ss", self.timeout)
            channel.emit(SYNTHESIS_COMPLETE, {"text": None})
            return None
        except Exception as e:
            logger.warning("Synthesis failed: %s", error_message(e))
            channel.emit(SYNTHESIS_COMPLETE, {"text": None})
            return None

        text = "".join(chunks)
        channel.emit(SYNTHESIS_COMPLETE, {"text": text})
        return text

    async def _consume(self, prompt: str, chunks: List[str], channel: EventChannel) -> None:
        try:
            async for chunk in self.adapter.invoke(self.model, prompt):
                if not chunk:
                    continue
                chunks.append(chunk)
                channel.emit(SYNTHESIS_CHUNK, {"chunk": chunk})
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise ModelInvocationError(error_message(e), ErrorKind.TIMEOUT) from e
