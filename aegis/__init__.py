"""
aegis - one client interface for multiple AI language model providers.

Usage:
    from aegis import AegisConfig, Gateway, Message, ProviderType

    gateway = Gateway.from_config(AegisConfig().with_anthropic(api_key))
    reply = await gateway.send(ProviderType.ANTHROPIC, [Message.user("Hello")])
    print(reply.text)
"""

from aegis.config import AegisConfig
from aegis.exceptions import (
    AegisError,
    APIError,
    ConfigurationError,
    InvalidAPIKeyError,
    NetworkError,
    ProviderNotFoundError,
    RateLimitExceededError,
)
from aegis.gateway import Gateway
from aegis.models import (
    ContentPart,
    Conversation,
    ImagePart,
    Message,
    Metadata,
    ProviderType,
    Role,
    TextPart,
    Usage,
)
from aegis.providers import MessageStream, Provider, ProviderCapabilities

__version__ = "0.1.0"

__all__ = [
    "AegisConfig",
    "AegisError",
    "APIError",
    "ConfigurationError",
    "ContentPart",
    "Conversation",
    "Gateway",
    "ImagePart",
    "InvalidAPIKeyError",
    "Message",
    "MessageStream",
    "Metadata",
    "NetworkError",
    "Provider",
    "ProviderCapabilities",
    "ProviderNotFoundError",
    "ProviderType",
    "RateLimitExceededError",
    "Role",
    "TextPart",
    "Usage",
]
