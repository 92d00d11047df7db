from .types import (
    InvocationState,
    ModelInvocation,
    AggregateResult,
    ResearchTask,
    SearchResult,
    WebContext,
    SavedResearch,
)
from .errors import ConfigError, ErrorKind, ModelInvocationError, PlanningError
from .events import Event, EventChannel, stream_run
from .models import ModelDescriptor, MODEL_REGISTRY, DEFAULT_MODELS, display_name
from .llm import LLMProvider, ModelAdapter, create_model_adapter
from .search import WebSearch

__all__ = [
    "InvocationState",
    "ModelInvocation",
    "AggregateResult",
    "ResearchTask",
    "SearchResult",
    "WebContext",
    "SavedResearch",
    "ErrorKind",
    "ModelInvocationError",
    "PlanningError",
    "ConfigError",
    "Event",
    "EventChannel",
    "stream_run",
    "ModelDescriptor",
    "MODEL_REGISTRY",
    "DEFAULT_MODELS",
    "display_name",
    "LLMProvider",
    "ModelAdapter",
    "create_model_adapter",
    "WebSearch",
]
