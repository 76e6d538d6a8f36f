"""
Function-calling invoker for multi-provider support.
Forces the model to answer with a call to a single function and hands back
the raw JSON arguments of that call.
"""
import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.config import AIFunctionConfigs
from core.provider_registry import ProviderType, get_provider, get_provider_env_key_name

logger = logging.getLogger(__name__)


class InvokerError(Exception):
    """Exception raised when LLM invocation fails."""
    pass


@dataclass
class FunctionDefinition:
    """A function the model is asked to call, described by a JSON schema."""
    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class FunctionCaller(ABC):
    """Language-model provider that answers with structured arguments."""

    @abstractmethod
    def invoke(
        self,
        messages: List[Dict[str, str]],
        function: FunctionDefinition,
        model: str,
        temperature: float,
    ) -> str:
        """Return the raw JSON arguments the model produced for ``function``."""
        ...


def _get_provider_from_model(model_id: str) -> str:
    """
    Determine provider from model ID.
    OpenAI-family models go to Azure when an Azure endpoint is configured.
    """
    model_lower = model_id.lower()

    if "gemini" in model_lower:
        return ProviderType.GEMINI

    if "claude" in model_lower:
        return ProviderType.CLAUDE

    if any(x in model_lower for x in ["gpt-4", "gpt-3.5", "gpt-35", "gpt4", "o1", "o3"]):
        if AIFunctionConfigs.AZURE_ENDPOINT:
            return ProviderType.AZURE_OPENAI
        return ProviderType.OPENAI

    logger.warning("function_calling: unknown model provider for %s, defaulting to OpenAI", model_id)
    return ProviderType.OPENAI


def resolve_api_key(provider: str) -> str:
    info = get_provider(provider)
    if info and info.requires_base_url and not AIFunctionConfigs.AZURE_ENDPOINT:
        raise InvokerError(f"{info.name} requires AZURE_OPENAI_ENDPOINT to be set.")
    env_key_name = get_provider_env_key_name(provider)
    api_key = os.getenv(env_key_name, "") if env_key_name else ""
    if not api_key:
        raise InvokerError(f"No API key available for {provider}. Set {env_key_name}.")
    return api_key


def create_langchain_model(
    provider: str,
    model_id: str,
    api_key: str,
    temperature: float = 0.5,
    max_tokens: int = 2048,
    **kwargs
) -> Any:
    """
    Create a LangChain chat model instance for the specified provider.

    Args:
        provider: Provider ID (openai, azure_openai, gemini, claude)
        model_id: Model identifier (deployment name for Azure)
        api_key: API key to use
        temperature: Sampling temperature
        max_tokens: Maximum output tokens

    Returns:
        LangChain BaseChatModel instance
    """
    try:
        if provider == ProviderType.OPENAI:
            from langchain_openai import ChatOpenAI
            return ChatOpenAI(
                model=model_id,
                api_key=api_key,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs
            )

        elif provider == ProviderType.AZURE_OPENAI:
            from langchain_openai import AzureChatOpenAI
            return AzureChatOpenAI(
                azure_deployment=model_id,
                azure_endpoint=AIFunctionConfigs.AZURE_ENDPOINT,
                api_version=AIFunctionConfigs.AZURE_API_VERSION,
                api_key=api_key,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs
            )

        elif provider == ProviderType.GEMINI:
            from langchain_google_genai import ChatGoogleGenerativeAI
            return ChatGoogleGenerativeAI(
                model=model_id,
                google_api_key=api_key,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs
            )

        elif provider == ProviderType.CLAUDE:
            from langchain_anthropic import ChatAnthropic
            return ChatAnthropic(
                model=model_id,
                api_key=api_key,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs
            )

        else:
            raise InvokerError(f"Unsupported provider: {provider}")

    except InvokerError:
        raise
    except ImportError as e:
        raise InvokerError(f"Missing LangChain package for {provider}: {e}") from e
    except Exception as e:
        raise InvokerError(f"Failed to create model for {provider}: {e}") from e


def to_langchain_messages(messages: List[Dict[str, str]]) -> list:
    from langchain_core.messages import HumanMessage, AIMessage, SystemMessage

    lc_messages = []
    for msg in messages:
        role = msg.get("role", "user")
        content = msg.get("content", "")
        extra = {"name": msg["name"]} if msg.get("name") else {}

        if role == "system":
            lc_messages.append(SystemMessage(content=content, **extra))
        elif role == "assistant":
            lc_messages.append(AIMessage(content=content, **extra))
        else:  # user
            lc_messages.append(HumanMessage(content=content, **extra))
    return lc_messages


def extract_function_arguments(response: Any, function_name: str) -> str:
    """
    Pull the arguments of ``function_name`` out of a chat model response.

    Arguments that LangChain could not parse are returned as the raw string
    so the caller reports the decode failure.
    """
    for call in getattr(response, "tool_calls", None) or []:
        if call.get("name") == function_name:
            return json.dumps(call.get("args") or {}, ensure_ascii=False)

    for call in getattr(response, "invalid_tool_calls", None) or []:
        if call.get("name") in (None, function_name):
            return call.get("args") or ""

    raise InvokerError(f"Model did not call function {function_name}")


class LangChainFunctionCaller(FunctionCaller):
    """``FunctionCaller`` backed by LangChain chat models with bound tools."""

    def __init__(self, max_tokens: int = AIFunctionConfigs.MAX_TOKENS):
        self.max_tokens = max_tokens

    def invoke(
        self,
        messages: List[Dict[str, str]],
        function: FunctionDefinition,
        model: str,
        temperature: float,
    ) -> str:
        provider = _get_provider_from_model(model)
        api_key = resolve_api_key(provider)
        chat_model = create_langchain_model(
            provider=provider,
            model_id=model,
            api_key=api_key,
            temperature=temperature,
            max_tokens=self.max_tokens,
        )
        bound = chat_model.bind_tools([function.to_tool()], tool_choice=function.name)

        logger.info("function_calling: invoking %s model '%s' for function %s", provider, model, function.name)
        try:
            response = bound.invoke(to_langchain_messages(messages))
        except Exception as e:
            logger.error("function_calling: invocation failed: %s", e)
            raise InvokerError(f"Failed to invoke {provider} model: {e}") from e

        return extract_function_arguments(response, function.name)


_default_caller: Optional[FunctionCaller] = None


def get_function_caller() -> FunctionCaller:
    global _default_caller
    if _default_caller is None:
        _default_caller = LangChainFunctionCaller()
    return _default_caller
