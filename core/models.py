"""
Static model registry.

Model identifiers are opaque ``provider/model`` strings. They are the
correlation key everywhere in the orchestrator; display names are only
used when a human-readable label is needed (synthesis prompts, listings).
"""

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class ModelDescriptor:
    """A selectable model."""
    id: str
    display_name: str

    @property
    def provider(self) -> str:
        return self.id.split("/", 1)[0] if "/" in self.id else ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "provider": self.provider,
        }


_DESCRIPTORS = [
    ModelDescriptor("anthropic/claude-sonnet-4.5", "Claude Sonnet 4.5"),
    ModelDescriptor("anthropic/claude-haiku-4.5", "Claude Haiku 4.5"),
    ModelDescriptor("anthropic/claude-3.7-sonnet", "Claude 3.7 Sonnet"),
    ModelDescriptor("openai/gpt-5", "GPT-5"),
    ModelDescriptor("openai/gpt-4.1", "GPT-4.1"),
    ModelDescriptor("openai/gpt-4o", "GPT-4o"),
    ModelDescriptor("openai/o3", "O3"),
    ModelDescriptor("google/gemini-2.5-pro", "Gemini 2.5 Pro"),
    ModelDescriptor("google/gemini-2.5-flash", "Gemini 2.5 Flash"),
    ModelDescriptor("xai/grok-4", "Grok 4"),
    ModelDescriptor("xai/grok-4-reasoning", "Grok 4 Reasoning"),
    ModelDescriptor("xai/grok-4-fast-reasoning", "Grok 4 Fast Reasoning"),
    ModelDescriptor("xai/grok-4-fast-non-reasoning", "Grok 4 Fast Non-Reasoning"),
    ModelDescriptor("deepseek/deepseek-v3", "DeepSeek V3"),
    ModelDescriptor("deepseek/deepseek-r1", "DeepSeek R1"),
    ModelDescriptor("meta/llama-3.3-70b", "Llama 3.3 70B"),
]

MODEL_REGISTRY: Dict[str, ModelDescriptor] = {d.id: d for d in _DESCRIPTORS}

DEFAULT_MODELS: List[str] = [
    "anthropic/claude-sonnet-4.5",
    "openai/gpt-5",
    "google/gemini-2.5-pro",
    "xai/grok-4-fast-non-reasoning",
]

DEFAULT_SYNTHESIS_MODEL = "anthropic/claude-sonnet-4.5"
DEFAULT_PLANNER_MODEL = "anthropic/claude-sonnet-4.5"


def display_name(model_id: str) -> str:
    """Human-readable name for an identifier; unknown identifiers pass through."""
    descriptor = MODEL_REGISTRY.get(model_id)
    return descriptor.display_name if descriptor else model_id


def list_models() -> List[ModelDescriptor]:
    return list(_DESCRIPTORS)
