"""
Provider Abstraction Layer.

Application code talks to the Gateway; the Gateway talks to one adapter per
backend; adapters translate the shared Message model to each wire format.

Architecture:
    Application Layer
         ↓
    Gateway (aegis.gateway)
         ↓
    Provider interface (this package)
         ↓
    Concrete Adapters (Anthropic, OpenAI)
         ↓
    HTTP APIs

Usage:
    from aegis.providers import AnthropicProvider, OpenAIProvider

    provider = OpenAIProvider(api_key="sk-...")
    reply = await provider.send(messages)
"""

from aegis.providers.anthropic import AnthropicProvider
from aegis.providers.base import HTTPProvider, MessageStream, Provider, ProviderCapabilities
from aegis.providers.openai import OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "HTTPProvider",
    "MessageStream",
    "OpenAIProvider",
    "Provider",
    "ProviderCapabilities",
]
