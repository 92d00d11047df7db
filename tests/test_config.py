"""Tests for environment-driven configuration."""

import os
from unittest.mock import patch

import pytest

from config import Config
from core.errors import ConfigError
from core.models import DEFAULT_MODELS


def test_defaults_without_environment():
    with patch.dict(os.environ, {}, clear=True):
        cfg = Config.from_env()

    assert cfg.default_models == list(DEFAULT_MODELS)
    assert cfg.model_timeout_seconds == 120
    assert not cfg.validate()
    assert cfg.llm_provider == "none"


def test_environment_overrides():
    env = {
        "AI_GATEWAY_API_KEY": "gw",
        "DEFAULT_MODELS": "openai/gpt-5, xai/grok-4 ,",
        "MODEL_TIMEOUT_SECONDS": "0",
        "SEARCH_MAX_RESULTS": "3",
        "LOG_LEVEL": "debug",
    }
    with patch.dict(os.environ, env, clear=True):
        cfg = Config.from_env()

    assert cfg.default_models == ["openai/gpt-5", "xai/grok-4"]
    assert cfg.model_timeout_seconds is None
    assert cfg.search_max_results == 3
    assert cfg.log_level == "DEBUG"
    assert cfg.validate()
    assert cfg.llm_provider == "gateway"


def test_direct_provider_fallback():
    with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "a", "OPENAI_API_KEY": "o"}, clear=True):
        cfg = Config.from_env()

    assert cfg.llm_provider == "anthropic+openai"


@pytest.mark.parametrize("name, value", [
    ("MODEL_TIMEOUT_SECONDS", "two minutes"),
    ("API_PORT", "80a"),
    ("MAX_TOKENS", ""),
])
def test_malformed_number_is_a_config_error(name, value):
    with patch.dict(os.environ, {name: value}, clear=True):
        with pytest.raises(ConfigError, match=name):
            Config.from_env()
