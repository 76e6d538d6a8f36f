"""
Providers whose chat models can be forced to answer with a function call.
"""
from dataclasses import dataclass
from typing import Dict, Optional
from enum import Enum


class ProviderType(str, Enum):
    """Supported LLM provider types."""
    OPENAI = "openai"
    AZURE_OPENAI = "azure_openai"
    GEMINI = "gemini"
    CLAUDE = "claude"


@dataclass(frozen=True)
class ProviderInfo:
    id: str
    name: str
    env_key_name: str  # Environment variable holding the system key
    requires_base_url: bool = False


PROVIDER_REGISTRY: Dict[str, ProviderInfo] = {
    ProviderType.OPENAI: ProviderInfo(id=ProviderType.OPENAI, name="OpenAI", env_key_name="OPENAI_API_KEY"),
    ProviderType.AZURE_OPENAI: ProviderInfo(
        id=ProviderType.AZURE_OPENAI,
        name="Azure OpenAI",
        env_key_name="AZURE_OPENAI_API_KEY",
        requires_base_url=True,
    ),
    ProviderType.GEMINI: ProviderInfo(id=ProviderType.GEMINI, name="Google Gemini", env_key_name="GEMINI_API_KEY"),
    ProviderType.CLAUDE: ProviderInfo(id=ProviderType.CLAUDE, name="Anthropic Claude", env_key_name="ANTHROPIC_API_KEY"),
}


def get_provider(provider_id: str) -> Optional[ProviderInfo]:
    return PROVIDER_REGISTRY.get(provider_id)


def get_provider_env_key_name(provider_id: str) -> Optional[str]:
    """Get the environment variable name for a provider's system key."""
    provider = get_provider(provider_id)
    return provider.env_key_name if provider else None
