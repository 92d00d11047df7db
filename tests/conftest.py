"""Shared fakes for the orchestrator tests."""

import asyncio
import json
from typing import Dict, List, Optional

import pytest

from core.events import Event
from core.types import SearchResult, WebContext
from orchestration.supervisor import ResearchSupervisor


class Hang:
    """Script step that blocks forever (until cancelled)."""


class FakeAdapter:
    """
    Scripted stand-in for ``core.llm.ModelAdapter``.

    ``scripts`` maps a model id to a list of steps: strings are yielded as
    chunks, numbers are sleeps, exceptions are raised, ``Hang()`` blocks.
    Models without a script stream ``"<id> answer"`` as one chunk.
    """

    def __init__(
        self,
        scripts: Optional[Dict[str, list]] = None,
        completion=None,
    ):
        self.scripts = scripts or {}
        self.completion = completion
        self.calls: List[tuple] = []
        self.complete_calls: List[tuple] = []

    async def invoke(self, model_id: str, prompt: str):
        self.calls.append((model_id, prompt))
        for step in self.scripts.get(model_id, [f"{model_id} answer"]):
            await asyncio.sleep(0)
            if isinstance(step, BaseException):
                raise step
            if isinstance(step, Hang):
                await asyncio.Event().wait()
            elif isinstance(step, (int, float)):
                await asyncio.sleep(step)
            else:
                yield step

    async def complete(self, model_id: str, prompt: str) -> str:
        self.complete_calls.append((model_id, prompt))
        if isinstance(self.completion, BaseException):
            raise self.completion
        if callable(self.completion):
            return self.completion(prompt)
        return self.completion or ""


class FakeSearch:
    """Stand-in for ``core.search.WebSearch``."""

    def __init__(self, context: Optional[WebContext] = None, error: Optional[Exception] = None):
        self.context = context
        self.error = error
        self.queries: List[str] = []

    async def search(self, query: str) -> Optional[WebContext]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.context


def make_context(query: str = "q") -> WebContext:
    return WebContext(
        query=query,
        answer="Short answer",
        results=[
            SearchResult(title="Result One", url="https://example.com/1", content="First snippet", score=0.9),
            SearchResult(title="Result Two", url="https://example.com/2", content="Second snippet", score=0.8),
        ],
    )


def make_plan_json(count: int = 3) -> str:
    return json.dumps({
        "tasks": [
            {
                "id": f"task-{i}",
                "title": f"Title {i}",
                "description": f"Description {i}",
                "prompt": f"Directive prompt {i}",
            }
            for i in range(1, count + 1)
        ]
    })


def parse_sse(body: str) -> List[Event]:
    """Parse a text/event-stream body back into events."""
    events = []
    for frame in body.split("\n\n"):
        if not frame.strip():
            continue
        name, data = None, None
        for line in frame.splitlines():
            if line.startswith("event: "):
                name = line[len("event: "):]
            elif line.startswith("data: "):
                data = json.loads(line[len("data: "):])
        events.append(Event(name, data))
    return events


def chunks_for(events, name: str) -> str:
    return "".join(e.data["chunk"] for e in events if e.name == "model-chunk" and e.data["name"] == name)


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def supervisor_factory():
    """Build a supervisor around fakes; synthesis uses the ``synth`` model id."""
    def factory(adapter: FakeAdapter, search=None, timeout_seconds=5, default_models=None):
        return ResearchSupervisor(
            adapter=adapter,
            search=search,
            synthesis_model="synth",
            planner_model="planner",
            timeout_seconds=timeout_seconds,
            default_models=default_models,
        )
    return factory
