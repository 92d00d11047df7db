"""
Error taxonomy for model invocations.

Every failure that reaches the event stream is a flat message string.
``ErrorKind`` is kept alongside it internally so logs and any future retry
policy can tell a rate limit from a dead connection.
"""

import asyncio
from enum import Enum
from typing import Optional

import anthropic
import openai


class ErrorKind(Enum):
    TRANSPORT = "transport"
    RATE_LIMITED = "rate_limited"
    INVALID_MODEL = "invalid_model"
    PROVIDER_REJECTED = "provider_rejected"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class ModelInvocationError(Exception):
    """Raised by the model adapter when a call cannot be made or fails."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN):
        super().__init__(message)
        self.kind = kind


class PlanningError(Exception):
    """The planner could not produce a usable research plan.

    This is the one failure the orchestrator surfaces to callers instead of
    folding it into a degraded result. The caller decides whether to retry.
    """


# Subclasses must come before their bases.
_KIND_BY_EXCEPTION = (
    (openai.RateLimitError, ErrorKind.RATE_LIMITED),
    (anthropic.RateLimitError, ErrorKind.RATE_LIMITED),
    (openai.NotFoundError, ErrorKind.INVALID_MODEL),
    (anthropic.NotFoundError, ErrorKind.INVALID_MODEL),
    (openai.APITimeoutError, ErrorKind.TIMEOUT),
    (anthropic.APITimeoutError, ErrorKind.TIMEOUT),
    (openai.APIConnectionError, ErrorKind.TRANSPORT),
    (anthropic.APIConnectionError, ErrorKind.TRANSPORT),
    (openai.APIStatusError, ErrorKind.PROVIDER_REJECTED),
    (anthropic.APIStatusError, ErrorKind.PROVIDER_REJECTED),
    (asyncio.TimeoutError, ErrorKind.TIMEOUT),
    (ConnectionError, ErrorKind.TRANSPORT),
)


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception raised during a model call to an ``ErrorKind``."""
    if isinstance(exc, ModelInvocationError):
        return exc.kind
    for exc_type, kind in _KIND_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return kind
    return ErrorKind.UNKNOWN


def error_message(exc: BaseException, default: Optional[str] = None) -> str:
    """Human-readable message for an exception, never empty."""
    message = str(exc).strip()
    if message:
        return message
    return default or type(exc).__name__


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""
