"""
Configuration for the Research Orchestrator.

Environment Variables:
    AI_GATEWAY_API_KEY    - Primary: AI gateway key, routes every provider/model id
    AI_GATEWAY_BASE_URL   - Optional: gateway endpoint (default: Vercel AI Gateway)
    ANTHROPIC_API_KEY     - Fallback: direct access to anthropic/* models
    OPENAI_API_KEY        - Fallback: direct access to openai/* models
    TAVILY_API_KEY        - Optional: Tavily API key for web search
    DEFAULT_MODELS        - Optional: comma-separated model ids used when a query names none
    SYNTHESIS_MODEL       - Optional: model that writes the consolidated report
    PLANNER_MODEL         - Optional: model for clarifying questions and research plans
    MODEL_TIMEOUT_SECONDS - Optional: per-model deadline, 0 disables (default: 120)

Create a .env file in this directory with:

    AI_GATEWAY_API_KEY=your-gateway-key
    TAVILY_API_KEY=tvly-your-key-here
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from core.errors import ConfigError
from core.llm import DEFAULT_GATEWAY_URL
from core.models import DEFAULT_MODELS, DEFAULT_PLANNER_MODEL, DEFAULT_SYNTHESIS_MODEL


def _env_number(name: str, default: str, cast=int):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def _split_models(value: Optional[str]) -> List[str]:
    if not value:
        return list(DEFAULT_MODELS)
    return [m.strip() for m in value.split(",") if m.strip()]


@dataclass
class Config:
    """Application configuration."""

    # Model backends (gateway is primary)
    ai_gateway_api_key: Optional[str] = None
    ai_gateway_base_url: str = DEFAULT_GATEWAY_URL
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    tavily_api_key: Optional[str] = None

    # Orchestration
    default_models: List[str] = field(default_factory=lambda: list(DEFAULT_MODELS))
    synthesis_model: str = DEFAULT_SYNTHESIS_MODEL
    planner_model: str = DEFAULT_PLANNER_MODEL
    max_tokens: int = 4096
    model_timeout_seconds: Optional[float] = 120

    # Web search
    search_max_results: int = 5
    search_depth: str = "advanced"

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        timeout = _env_number("MODEL_TIMEOUT_SECONDS", "120", float)

        return cls(
            ai_gateway_api_key=os.getenv("AI_GATEWAY_API_KEY"),
            ai_gateway_base_url=os.getenv("AI_GATEWAY_BASE_URL", DEFAULT_GATEWAY_URL),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            tavily_api_key=os.getenv("TAVILY_API_KEY"),
            default_models=_split_models(os.getenv("DEFAULT_MODELS")),
            synthesis_model=os.getenv("SYNTHESIS_MODEL", DEFAULT_SYNTHESIS_MODEL),
            planner_model=os.getenv("PLANNER_MODEL", DEFAULT_PLANNER_MODEL),
            max_tokens=_env_number("MAX_TOKENS", "4096"),
            model_timeout_seconds=timeout if timeout > 0 else None,
            search_max_results=_env_number("SEARCH_MAX_RESULTS", "5"),
            search_depth=os.getenv("SEARCH_DEPTH", "advanced"),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=_env_number("API_PORT", "8000"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> bool:
        """Check if at least one model backend is configured."""
        return bool(self.ai_gateway_api_key or self.anthropic_api_key or self.openai_api_key)

    @property
    def llm_provider(self) -> str:
        if self.ai_gateway_api_key:
            return "gateway"
        if self.anthropic_api_key and self.openai_api_key:
            return "anthropic+openai"
        if self.anthropic_api_key:
            return "anthropic"
        if self.openai_api_key:
            return "openai"
        return "none"


# Global config instance
config = Config.from_env()
