import json
from types import SimpleNamespace

import pytest

from core.provider_registry import ProviderType
from services.llm.function_calling import (
    FunctionDefinition,
    InvokerError,
    _get_provider_from_model,
    extract_function_arguments,
    resolve_api_key,
)


def test_tool_call_arguments_serialized():
    response = SimpleNamespace(tool_calls=[{"name": "create-autotest-scene", "args": {"params": []}}], invalid_tool_calls=[])

    assert json.loads(extract_function_arguments(response, "create-autotest-scene")) == {"params": []}


def test_invalid_tool_call_returns_raw_arguments():
    response = SimpleNamespace(tool_calls=[], invalid_tool_calls=[{"name": "create-autotest-scene", "args": "{broken"}])

    assert extract_function_arguments(response, "create-autotest-scene") == "{broken"


def test_no_tool_call_is_an_error():
    with pytest.raises(InvokerError):
        extract_function_arguments(SimpleNamespace(tool_calls=[], invalid_tool_calls=[]), "create-autotest-scene")


def test_provider_from_model():
    assert _get_provider_from_model("gemini-2.0-flash") == ProviderType.GEMINI
    assert _get_provider_from_model("claude-3-5-sonnet") == ProviderType.CLAUDE


def test_definition_as_tool():
    tool = FunctionDefinition(name="f", description="d", parameters={"type": "object"}).to_tool()

    assert tool["function"]["name"] == "f"
    assert tool["type"] == "function"


def test_missing_key_is_invoker_error(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(InvokerError) as exc_info:
        resolve_api_key(ProviderType.GEMINI)

    assert "GEMINI_API_KEY" in str(exc_info.value)


def test_key_read_from_environment(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")

    assert resolve_api_key(ProviderType.CLAUDE) == "sk-test"
