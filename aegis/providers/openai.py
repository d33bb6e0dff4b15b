"""
OpenAI chat-completions API adapter.

Wire format:
    POST {base_url}/v1/chat/completions
    Authorization: Bearer <key>

    {"model", "messages": [{"role", "content"}], "temperature", "max_tokens", "stream"}

Message content is sent as a single string, so image parts are dropped when
marshalling (``supported_content_types`` is text only). Streaming replies are
``chat.completion.chunk`` objects carrying ``choices[0].delta.content`` and
end with ``data: [DONE]``.

Usage:
    from aegis.providers.openai import OpenAIProvider

    provider = OpenAIProvider(api_key="sk-...", temperature=0.2)
    stream = await provider.stream([Message.user("Say hi")])
    async for fragment in stream:
        print(fragment.text, end="")
"""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from aegis.models import ContentPart, Message, Metadata, ProviderType, Role, TextPart, Usage
from aegis.providers.base import (
    HTTPProvider,
    ProviderCapabilities,
    WireErrorResponse,
    text_parts,
)
from aegis.providers.sse import ServerSentEvent

logger = logging.getLogger(__name__)

OPENAI_API_URL = "https://api.openai.com"
DEFAULT_TEMPERATURE = 0.7
STREAM_DONE = "[DONE]"

CAPABILITIES = ProviderCapabilities(
    streaming=True,
    max_tokens=2048,
    supported_content_types=frozenset({"text"}),
    models=(
        "gpt-4-turbo-preview",
        "gpt-4o",
        "gpt-4o-mini",
        "gpt-3.5-turbo",
    ),
)


# ============================================================================
# WIRE SCHEMAS
# ============================================================================


class OpenAIMessage(BaseModel):
    role: str = "assistant"
    content: str | None = None


class OpenAIChoice(BaseModel):
    index: int = 0
    message: OpenAIMessage
    finish_reason: str | None = None


class OpenAIUsage(BaseModel):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int | None = Field(default=None, ge=0)


class OpenAIResponse(BaseModel):
    id: str | None = None
    model: str | None = None
    choices: list[OpenAIChoice]
    usage: OpenAIUsage | None = None


class OpenAIErrorDetail(BaseModel):
    message: str = ""
    type: str | None = None
    code: str | int | None = None


class OpenAIErrorResponse(WireErrorResponse):
    error: OpenAIErrorDetail

    def error_type(self) -> str | None:
        return self.error.type

    def error_message(self) -> str:
        return self.error.message


class OpenAIDelta(BaseModel):
    role: str | None = None
    content: str | None = None


class OpenAIStreamChoice(BaseModel):
    index: int = 0
    delta: OpenAIDelta = Field(default_factory=OpenAIDelta)
    finish_reason: str | None = None


class OpenAIStreamChunk(BaseModel):
    choices: list[OpenAIStreamChoice] = Field(default_factory=list)


# ============================================================================
# PROVIDER
# ============================================================================


class OpenAIProvider(HTTPProvider):
    """Adapter for the OpenAI chat-completions API."""

    default_base_url = OPENAI_API_URL
    endpoint = "/v1/chat/completions"
    success_schema = OpenAIResponse
    error_schema = OpenAIErrorResponse

    def __init__(self, api_key: str, *, temperature: float = DEFAULT_TEMPERATURE, **kwargs: Any):
        """Initialize the adapter.

        Args:
            api_key: OpenAI API key
            temperature: Sampling temperature sent with every request
            **kwargs: See HTTPProvider (model, max_tokens, base_url, http_client)
        """
        super().__init__(api_key, **kwargs)
        self._temperature = temperature

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.OPENAI

    def get_capabilities(self) -> ProviderCapabilities:
        return CAPABILITIES

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(self, messages: Sequence[Message], stream: bool) -> dict[str, Any]:
        wire_messages = []
        for message in messages:
            dropped = [part.type for part in message.content if not isinstance(part, TextPart)]
            if dropped:
                logger.debug(f"Dropping unsupported content parts: {', '.join(dropped)}")
            wire_messages.append(
                {"role": message.role.value, "content": "".join(text_parts(message.content))}
            )

        return {
            "model": self._model,
            "messages": wire_messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "stream": stream,
        }

    def _to_message(self, response: OpenAIResponse) -> Message:
        parts: tuple[ContentPart, ...] = ()
        if response.choices and response.choices[0].message.content:
            parts = (TextPart(response.choices[0].message.content),)

        usage = None
        if response.usage is not None:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
            )
            if (
                response.usage.total_tokens is not None
                and response.usage.total_tokens != usage.total_tokens
            ):
                logger.debug(
                    f"Reported total_tokens {response.usage.total_tokens} differs from "
                    f"prompt + completion ({usage.total_tokens})"
                )

        return Message(
            role=Role.ASSISTANT,
            content=parts,
            metadata=Metadata(
                model=response.model or self._model,
                provider=self.name,
                usage=usage,
            ),
        )

    def _is_stream_end(self, event: ServerSentEvent) -> bool:
        return event.data.strip() == STREAM_DONE

    def _decode_event(self, event: ServerSentEvent) -> tuple[ContentPart, ...]:
        try:
            chunk = OpenAIStreamChunk.model_validate_json(event.data)
        except ValidationError:
            logger.debug(f"Skipping malformed stream event: {event.data[:80]!r}")
            return ()

        if not chunk.choices or not chunk.choices[0].delta.content:
            return ()
        return (TextPart(chunk.choices[0].delta.content),)
