from enum import Enum
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
import uuid

from .errors import ErrorKind
from .models import display_name


class InvocationState(Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ModelInvocation:
    """One call to one model, owned by the task that drives its stream."""
    identifier: str
    prompt: str = ""
    chunks: List[str] = field(default_factory=list)
    state: InvocationState = InvocationState.PENDING
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    @property
    def is_terminal(self) -> bool:
        return self.state in (InvocationState.COMPLETED, InvocationState.FAILED)

    def start(self) -> None:
        self.state = InvocationState.STREAMING
        self.started_at = datetime.now()

    def append(self, chunk: str) -> None:
        if self.is_terminal:
            raise RuntimeError(f"Invocation {self.identifier} is already {self.state.value}")
        self.chunks.append(chunk)

    def complete(self) -> None:
        self.state = InvocationState.COMPLETED
        self.finished_at = datetime.now()

    def fail(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN) -> None:
        self.state = InvocationState.FAILED
        self.error = message
        self.error_kind = kind
        self.finished_at = datetime.now()

    def to_result(self) -> "AggregateResult":
        if self.state == InvocationState.COMPLETED:
            return AggregateResult(name=self.identifier, text=self.text)
        if self.state == InvocationState.FAILED:
            return AggregateResult(
                name=self.identifier,
                error=self.error,
                error_kind=self.error_kind,
            )
        raise RuntimeError(f"Invocation {self.identifier} has not finished")


@dataclass(frozen=True)
class AggregateResult:
    """Final outcome of one model invocation.

    ``name`` is the model identifier. Exactly one of ``text``/``error`` is set.
    """
    name: str
    text: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def display_name(self) -> str:
        return display_name(self.name)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "text": self.text,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AggregateResult":
        return cls(
            name=data["name"],
            text=data.get("text"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class ResearchTask:
    """A complementary sub-question produced by the planner."""
    id: str
    title: str
    description: str
    prompt: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "prompt": self.prompt,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "ResearchTask":
        prompt = data.get("prompt") or data.get("directive_prompt")
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValueError("Task is missing a prompt")
        title = str(data.get("title") or f"Task {index + 1}")
        return cls(
            id=str(data.get("id") or f"task-{index + 1}"),
            title=title,
            description=str(data.get("description") or ""),
            prompt=prompt.strip(),
        )


@dataclass
class SearchResult:
    """A single web search hit."""
    title: str
    url: str
    content: str
    score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "content": self.content,
            "score": self.score,
        }


@dataclass
class WebContext:
    """Web search results shared by every model in a run."""
    query: str
    results: List[SearchResult] = field(default_factory=list)
    answer: Optional[str] = None

    @property
    def has_results(self) -> bool:
        return bool(self.results)

    def format_block(self) -> str:
        """Render the results as a prompt appendix; empty when there are no hits."""
        if not self.results:
            return ""
        summary = f"Summary: {self.answer}\n\n" if self.answer else ""
        entries = "\n".join(
            f"\n[{i}] {r.title}\nURL: {r.url}\n{r.content}\n"
            for i, r in enumerate(self.results, 1)
        )
        return (
            "\n\nWEB SEARCH RESULTS (Current information from the web):\n\n"
            f"{summary}{entries}\n\n"
            "Please use this current web information to provide an up-to-date, "
            "accurate answer."
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "answer": self.answer,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class SavedResearch:
    """A finished run a user chose to keep."""
    user_id: str
    query: str
    responses: List[AggregateResult] = field(default_factory=list)
    synthesis: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "query": self.query,
            "responses": [r.to_dict() for r in self.responses],
            "synthesis": self.synthesis,
            "created_at": self.created_at.isoformat(),
        }
