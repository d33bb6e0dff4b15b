"""
Provider Gateway.

Holds the adapters built at startup and routes each call to the one the
caller asked for. The gateway does not retry, fall back to another provider
or modify requests.

Usage:
    from aegis import AegisConfig, Gateway, Message, ProviderType

    async with Gateway.from_config(AegisConfig.from_env()) as gateway:
        reply = await gateway.send(ProviderType.ANTHROPIC, [Message.user("Hi")])

        stream = await gateway.stream(ProviderType.OPENAI, [Message.user("Hi")])
        async for fragment in stream:
            print(fragment.text, end="")

        print(gateway.capabilities(ProviderType.OPENAI).models)
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import httpx

from aegis.config import AegisConfig
from aegis.exceptions import ProviderNotFoundError
from aegis.models import Message, ProviderType
from aegis.providers.anthropic import AnthropicProvider
from aegis.providers.base import MessageStream, Provider, ProviderCapabilities
from aegis.providers.openai import OpenAIProvider

logger = logging.getLogger(__name__)


class Gateway:
    """Routes requests to the adapter registered for a provider type.

    The adapter list is fixed at construction and only read afterwards, so
    one gateway can serve concurrent requests.
    """

    def __init__(self, providers: Iterable[Provider] = ()):
        """Initialize the gateway.

        Args:
            providers: Adapters to route to, searched in order
        """
        self._providers: list[Provider] = list(providers)
        for provider in self._providers:
            logger.info(f"Registered provider: {provider.name}")

    @classmethod
    def from_config(
        cls,
        config: AegisConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> "Gateway":
        """Build one adapter per provider that has an API key.

        Missing keys are not an error; the provider is simply unavailable.

        Args:
            config: Credentials and model overrides
            http_client: Optional httpx client shared by all adapters

        Returns:
            Gateway with the configured adapters
        """
        providers: list[Provider] = []

        if config.anthropic_api_key:
            providers.append(
                AnthropicProvider(
                    config.anthropic_api_key,
                    model=config.anthropic_model,
                    http_client=http_client,
                )
            )
        else:
            logger.info("No Anthropic API key configured, skipping provider")

        if config.openai_api_key:
            providers.append(
                OpenAIProvider(
                    config.openai_api_key,
                    model=config.openai_model,
                    http_client=http_client,
                )
            )
        else:
            logger.info("No OpenAI API key configured, skipping provider")

        return cls(providers)

    def resolve(self, provider_type: ProviderType) -> Provider:
        """Return the adapter for ``provider_type``.

        Raises:
            ProviderNotFoundError: If no adapter is configured for it
        """
        for provider in self._providers:
            if provider.provider_type == provider_type:
                return provider

        available = ", ".join(self.list_providers()) or "none"
        name = getattr(provider_type, "value", provider_type)
        logger.warning(f"Provider not found: {name}. Available: {available}")
        raise ProviderNotFoundError(
            f"Provider not found: {name}. Available: {available}",
            provider_type=provider_type,
        )

    async def send(self, provider_type: ProviderType, messages: Sequence[Message]) -> Message:
        """Send ``messages`` to the chosen provider and return its reply."""
        return await self.resolve(provider_type).send(messages)

    async def stream(
        self, provider_type: ProviderType, messages: Sequence[Message]
    ) -> MessageStream:
        """Start a streaming request on the chosen provider."""
        return await self.resolve(provider_type).stream(messages)

    def capabilities(self, provider_type: ProviderType) -> ProviderCapabilities:
        """Capabilities of the chosen provider."""
        return self.resolve(provider_type).get_capabilities()

    def list_providers(self) -> list[str]:
        """Names of all configured providers, in lookup order."""
        return [provider.name for provider in self._providers]

    def has_provider(self, provider_type: ProviderType) -> bool:
        """Check if an adapter is configured for ``provider_type``."""
        return any(provider.provider_type == provider_type for provider in self._providers)

    def get_capabilities_summary(self) -> dict[str, dict[str, Any]]:
        """Capabilities of every configured provider.

        Returns:
            Dict mapping provider name to capabilities dict
        """
        summary = {}
        for provider in self._providers:
            caps = provider.get_capabilities()
            summary[provider.name] = {
                "streaming": caps.streaming,
                "max_tokens": caps.max_tokens,
                "supported_content_types": sorted(caps.supported_content_types),
                "models": list(caps.models),
            }
        return summary

    async def aclose(self) -> None:
        """Close the HTTP clients owned by the adapters."""
        for provider in self._providers:
            await provider.aclose()

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
