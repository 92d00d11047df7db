import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from core.errors import ErrorKind, ModelInvocationError, classify_error, error_message
from core.events import MODEL_CHUNK, MODEL_COMPLETE, EventChannel
from core.llm import ModelAdapter
from core.types import AggregateResult, ModelInvocation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelJob:
    """One model to run against one prompt. ``group`` tags the owning task, if any."""
    model_id: str
    prompt: str
    group: Optional[str] = None


class FanOutOrchestrator:
    """
    Runs a batch of model invocations concurrently and joins on all of them.

    Every job gets its own asyncio task and its own ``ModelInvocation``
    accumulator. Chunks are emitted the moment they arrive; nothing is
    buffered across models. One model failing or hanging never cancels
    or delays the others' events, and the returned results always follow
    the order the jobs were given in.
    """

    def __init__(self, adapter: ModelAdapter, timeout_seconds: Optional[float] = 120):
        self.adapter = adapter
        self.timeout = timeout_seconds

    async def dispatch(self, jobs: List[ModelJob], channel: EventChannel) -> List[AggregateResult]:
        if not jobs:
            return []

        invocations = [ModelInvocation(identifier=job.model_id, prompt=job.prompt) for job in jobs]
        await asyncio.gather(*(self._run(inv, channel) for inv in invocations))
        return [inv.to_result() for inv in invocations]

    async def _run(self, invocation: ModelInvocation, channel: EventChannel) -> None:
        name = invocation.identifier
        logger.info("[%s] Starting query...", name)
        invocation.start()

        try:
            if self.timeout:
                await asyncio.wait_for(self._consume(invocation, channel), timeout=self.timeout)
            else:
                await self._consume(invocation, channel)
        except asyncio.TimeoutError:
            # Only the deadline gets here; provider timeouts are wrapped in _consume.
            invocation.fail(f"Timed out after {self.timeout:g}s", ErrorKind.TIMEOUT)
        except Exception as e:
            invocation.fail(error_message(e), classify_error(e))
        else:
            invocation.complete()

        if invocation.error is None:
            logger.info("[%s] Completed. Text length: %d", name, len(invocation.text))
            channel.emit(MODEL_COMPLETE, {"name": name, "text": invocation.text, "error": None})
        else:
            logger.warning(
                "[%s] Failed (%s): %s", name, invocation.error_kind.value, invocation.error
            )
            channel.emit(MODEL_COMPLETE, {"name": name, "text": None, "error": invocation.error})

    async def _consume(self, invocation: ModelInvocation, channel: EventChannel) -> None:
        try:
            async for chunk in self.adapter.invoke(invocation.identifier, invocation.prompt):
                if not chunk:
                    continue
                invocation.append(chunk)
                channel.emit(MODEL_CHUNK, {"name": invocation.identifier, "chunk": chunk})
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise ModelInvocationError(error_message(e), ErrorKind.TIMEOUT) from e
