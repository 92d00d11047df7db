"""
Run events and the per-run channel that carries them.

Producers (one task per model invocation, plus the supervisor) call
``EventChannel.emit``; the transport drains the channel with ``async for``.
Each event is a single queue item, so concurrent producers can never
interleave partial events.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List

logger = logging.getLogger(__name__)

SEARCH_STARTED = "search-started"
SEARCH_COMPLETE = "search-complete"
MODEL_CHUNK = "model-chunk"
MODEL_COMPLETE = "model-complete"
SYNTHESIS_CHUNK = "synthesis-chunk"
SYNTHESIS_COMPLETE = "synthesis-complete"
DONE = "done"

EVENT_NAMES = (
    SEARCH_STARTED,
    SEARCH_COMPLETE,
    MODEL_CHUNK,
    MODEL_COMPLETE,
    SYNTHESIS_CHUNK,
    SYNTHESIS_COMPLETE,
    DONE,
)


@dataclass(frozen=True)
class Event:
    name: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_sse(self) -> str:
        """Server-sent-events frame."""
        return f"event: {self.name}\ndata: {json.dumps(self.data)}\n\n"

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, "data": self.data}


_CLOSED = object()


class EventChannel:
    """Append-only, ordered event channel for a single run."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self.events: List[Event] = []

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, name: str, data: Dict[str, Any] = None) -> Event:
        if name not in EVENT_NAMES:
            raise ValueError(f"Unknown event: {name}")
        if self._closed:
            raise RuntimeError(f"Cannot emit '{name}' on a closed channel")
        event = Event(name, dict(data or {}))
        self.events.append(event)
        self._queue.put_nowait(event)
        return event

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[Event]:
        return self._drain()

    async def _drain(self) -> AsyncIterator[Event]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item

    def named(self, name: str) -> List[Event]:
        return [e for e in self.events if e.name == name]


async def stream_run(
    producer: Callable[[EventChannel], Awaitable[Any]],
) -> AsyncIterator[Event]:
    """
    Run ``producer`` in the background and yield its events as they arrive.

    If the consumer stops early (e.g. the HTTP client disconnects) the
    producer task is cancelled. Producer exceptions are re-raised once the
    events emitted before the failure have been delivered.
    """
    channel = EventChannel()

    async def _run() -> Any:
        try:
            return await producer(channel)
        finally:
            channel.close()

    task = asyncio.create_task(_run())
    try:
        async for event in channel:
            yield event
        await task
    finally:
        if not task.done():
            logger.info("Event consumer went away; cancelling run")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
