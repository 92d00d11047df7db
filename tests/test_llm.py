"""Tests for model adapter routing and error classification."""

import asyncio

import anthropic
import httpx
import openai
import pytest

from config import Config
from core.errors import ErrorKind, ModelInvocationError, classify_error, error_message
from core.llm import LLMProvider, ModelAdapter, create_model_adapter, provider_model_name


class RecordingClient:
    def __init__(self, chunks=("a", "b")):
        self.chunks = chunks
        self.calls = []

    async def stream(self, model, prompt):
        self.calls.append(("stream", model, prompt))
        for chunk in self.chunks:
            yield chunk

    async def complete(self, model, prompt):
        self.calls.append(("complete", model, prompt))
        return "".join(self.chunks)


async def collect(iterator):
    return [chunk async for chunk in iterator]


@pytest.mark.asyncio
async def test_gateway_receives_identifier_unchanged():
    gateway = RecordingClient()
    adapter = ModelAdapter(gateway=gateway, anthropic=RecordingClient())

    assert await collect(adapter.invoke("xai/grok-4", "hi")) == ["a", "b"]
    assert gateway.calls == [("stream", "xai/grok-4", "hi")]


@pytest.mark.asyncio
async def test_direct_providers_get_native_names():
    claude, gpt = RecordingClient(), RecordingClient()
    adapter = ModelAdapter(anthropic=claude, openai=gpt)

    await collect(adapter.invoke("anthropic/claude-sonnet-4.5", "p"))
    assert await adapter.complete("openai/gpt-4.1", "p") == "ab"

    assert claude.calls == [("stream", "claude-sonnet-4-5", "p")]
    assert gpt.calls == [("complete", "gpt-4.1", "p")]


@pytest.mark.asyncio
@pytest.mark.parametrize("model_id", ["google/gemini-2.5-pro", "no-prefix", "openai/gpt-5"])
async def test_unroutable_models_fail_on_iteration(model_id):
    adapter = ModelAdapter(anthropic=RecordingClient())

    stream = adapter.invoke(model_id, "p")  # creating the iterator never raises
    with pytest.raises(ModelInvocationError) as exc_info:
        await collect(stream)
    assert exc_info.value.kind == ErrorKind.INVALID_MODEL


def test_provider_model_name():
    assert provider_model_name(LLMProvider.GATEWAY, "anthropic/claude-haiku-4.5") == "anthropic/claude-haiku-4.5"
    assert provider_model_name(LLMProvider.ANTHROPIC, "anthropic/claude-haiku-4.5") == "claude-haiku-4-5"
    assert provider_model_name(LLMProvider.OPENAI, "openai/o3") == "o3"


def test_create_adapter_without_keys_is_unconfigured():
    adapter = create_model_adapter(Config())
    assert not adapter.configured


def test_create_adapter_with_gateway_key():
    adapter = create_model_adapter(Config(ai_gateway_api_key="gw-test"))
    assert adapter.configured
    provider, _, name = adapter.resolve("meta/llama-3.3-70b")
    assert provider == LLMProvider.GATEWAY
    assert name == "meta/llama-3.3-70b"


REQUEST = httpx.Request("POST", "https://api.example.com/v1/chat/completions")


@pytest.mark.parametrize("exc, kind", [
    (openai.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None), ErrorKind.RATE_LIMITED),
    (anthropic.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None), ErrorKind.RATE_LIMITED),
    (openai.NotFoundError("no such model", response=httpx.Response(404, request=REQUEST), body=None), ErrorKind.INVALID_MODEL),
    (openai.BadRequestError("bad", response=httpx.Response(400, request=REQUEST), body=None), ErrorKind.PROVIDER_REJECTED),
    (openai.APIConnectionError(request=REQUEST), ErrorKind.TRANSPORT),
    (anthropic.APIConnectionError(request=REQUEST), ErrorKind.TRANSPORT),
    (openai.APITimeoutError(request=REQUEST), ErrorKind.TIMEOUT),
    (asyncio.TimeoutError(), ErrorKind.TIMEOUT),
    (ModelInvocationError("x", ErrorKind.INVALID_MODEL), ErrorKind.INVALID_MODEL),
    (ValueError("odd"), ErrorKind.UNKNOWN),
])
def test_classify_error(exc, kind):
    assert classify_error(exc) == kind


def test_error_message():
    assert error_message(RuntimeError("  provider said no ")) == "provider said no"
    assert error_message(KeyError()) == "KeyError"
    assert error_message(KeyError(), "Unknown error") == "Unknown error"
