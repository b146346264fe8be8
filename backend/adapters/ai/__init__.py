# AI Adapters
# Anthropic, OpenAI completion clients
from typing import Optional

from core.interfaces.services import CompletionClient
from infrastructure.config.settings import Settings, settings as default_settings

from .anthropic_adapter import AnthropicCompletionClient
from .openai_adapter import OpenAICompletionClient


def build_completion_client(config: Optional[Settings] = None) -> CompletionClient:
    """Create the completion client for the configured provider."""
    config = config or default_settings
    if config.ai_provider == "openai":
        return OpenAICompletionClient(config=config)
    return AnthropicCompletionClient(config=config)


__all__ = [
    "AnthropicCompletionClient",
    "OpenAICompletionClient",
    "build_completion_client",
]
