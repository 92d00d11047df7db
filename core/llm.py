"""
Model adapter: one streaming interface over several LLM backends.

Usage:
    from core.llm import create_model_adapter

    adapter = create_model_adapter(config)
    async for chunk in adapter.invoke("openai/gpt-5", "Explain ..."):
        ...

Identifiers are ``provider/model``. When an AI gateway key is configured
every identifier is sent to the gateway unchanged (it speaks the OpenAI
chat-completions protocol). Without a gateway, ``anthropic/*`` and
``openai/*`` identifiers go straight to those providers and anything else
fails as an invalid model.
"""

import logging
from enum import Enum
from typing import AsyncIterator, Dict, List, Optional, Tuple

from .errors import ErrorKind, ModelInvocationError

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "https://ai-gateway.vercel.sh/v1"


class LLMProvider(Enum):
    GATEWAY = "gateway"
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


def _user_messages(prompt: str) -> List[Dict[str, str]]:
    return [{"role": "user", "content": prompt}]


class AnthropicLLMClient:
    """Wrapper for Anthropic's Claude API."""

    def __init__(self, api_key: str, base_url: Optional[str] = None, max_tokens: int = 4096):
        from anthropic import AsyncAnthropic

        if base_url:
            self.client = AsyncAnthropic(api_key=api_key, base_url=base_url)
        else:
            self.client = AsyncAnthropic(api_key=api_key)
        self.max_tokens = max_tokens
        logger.info("Anthropic client using base URL: %s", base_url or "default")

    async def stream(self, model: str, prompt: str) -> AsyncIterator[str]:
        async with self.client.messages.stream(
            model=model,
            max_tokens=self.max_tokens,
            messages=_user_messages(prompt),
        ) as stream:
            async for text in stream.text_stream:
                if text:
                    yield text

    async def complete(self, model: str, prompt: str) -> str:
        response = await self.client.messages.create(
            model=model,
            max_tokens=self.max_tokens,
            messages=_user_messages(prompt),
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )


class OpenAILLMClient:
    """Wrapper for the OpenAI chat-completions API (also used for the gateway)."""

    def __init__(self, api_key: str, base_url: Optional[str] = None):
        from openai import AsyncOpenAI

        if base_url:
            self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        else:
            self.client = AsyncOpenAI(api_key=api_key)
        logger.info("OpenAI-compatible client using base URL: %s", base_url or "default")

    async def stream(self, model: str, prompt: str) -> AsyncIterator[str]:
        stream = await self.client.chat.completions.create(
            model=model,
            messages=_user_messages(prompt),
            stream=True,
        )
        async for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content

    async def complete(self, model: str, prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=model,
            messages=_user_messages(prompt),
        )
        if not response.choices:
            raise ModelInvocationError(
                f"Empty response from {model}", ErrorKind.PROVIDER_REJECTED
            )
        return response.choices[0].message.content or ""


def provider_model_name(provider: LLMProvider, model_id: str) -> str:
    """Translate a ``provider/model`` identifier into the name a direct API expects."""
    if provider == LLMProvider.GATEWAY:
        return model_id
    name = model_id.split("/", 1)[1] if "/" in model_id else model_id
    if provider == LLMProvider.ANTHROPIC:
        # Gateway ids use dotted versions, the Anthropic API uses dashes.
        return name.replace(".", "-")
    return name


class ModelAdapter:
    """Routes model identifiers to a backend client.

    ``invoke`` never performs retries; provider-side failures surface as
    exceptions while the returned iterator is being consumed.
    """

    def __init__(
        self,
        gateway: Optional[OpenAILLMClient] = None,
        anthropic: Optional[AnthropicLLMClient] = None,
        openai: Optional[OpenAILLMClient] = None,
    ):
        self.gateway = gateway
        self.clients = {
            LLMProvider.ANTHROPIC: anthropic,
            LLMProvider.OPENAI: openai,
        }

    @property
    def configured(self) -> bool:
        return self.gateway is not None or any(self.clients.values())

    def resolve(self, model_id: str) -> Tuple[LLMProvider, object, str]:
        if self.gateway is not None:
            return LLMProvider.GATEWAY, self.gateway, model_id

        prefix = model_id.split("/", 1)[0] if "/" in model_id else ""
        try:
            provider = LLMProvider(prefix)
        except ValueError:
            raise ModelInvocationError(
                f"No backend available for model '{model_id}'", ErrorKind.INVALID_MODEL
            )
        client = self.clients.get(provider)
        if client is None:
            raise ModelInvocationError(
                f"No API key configured for provider '{provider.value}' (model '{model_id}')",
                ErrorKind.INVALID_MODEL,
            )
        return provider, client, provider_model_name(provider, model_id)

    async def invoke(self, model_id: str, prompt: str) -> AsyncIterator[str]:
        """Stream text fragments for ``prompt`` from ``model_id``."""
        provider, client, name = self.resolve(model_id)
        logger.debug("Invoking %s via %s as %s", model_id, provider.value, name)
        async for chunk in client.stream(name, prompt):
            yield chunk

    async def complete(self, model_id: str, prompt: str) -> str:
        """Blocking (non-streamed) call returning the whole response text."""
        provider, client, name = self.resolve(model_id)
        logger.debug("Completing with %s via %s as %s", model_id, provider.value, name)
        return await client.complete(name, prompt)


def create_model_adapter(config) -> ModelAdapter:
    """
    Create a model adapter from configuration.

    Args:
        config: ``config.Config`` instance.

    Returns:
        ModelAdapter with every backend that has a key configured.
    """
    gateway = None
    if config.ai_gateway_api_key:
        gateway = OpenAILLMClient(
            api_key=config.ai_gateway_api_key,
            base_url=config.ai_gateway_base_url or DEFAULT_GATEWAY_URL,
        )

    anthropic_client = None
    if config.anthropic_api_key:
        anthropic_client = AnthropicLLMClient(
            api_key=config.anthropic_api_key,
            max_tokens=config.max_tokens,
        )

    openai_client = None
    if config.openai_api_key:
        openai_client = OpenAILLMClient(api_key=config.openai_api_key)

    adapter = ModelAdapter(gateway=gateway, anthropic=anthropic_client, openai=openai_client)
    if not adapter.configured:
        logger.warning("No model backend configured; every model call will fail")
    return adapter
