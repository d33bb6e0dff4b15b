"""
Anthropic messages API adapter.

Wire format:
    POST {base_url}/v1/messages
    x-api-key: <key>
    anthropic-version: 2023-06-01

    {"model", "messages": [{"role", "content": [{"type", "text" | "source"}]}],
     "max_tokens", "stream", "system"?}

The messages API has no system role, so system messages are lifted into the
top-level ``system`` string. Streaming replies carry text in
``content_block_delta`` events and end with ``message_stop``.

Usage:
    from aegis.providers.anthropic import AnthropicProvider

    provider = AnthropicProvider(api_key="sk-ant-...", model="claude-3-haiku-20240307")
    reply = await provider.send([Message.user("What is the capital of Vietnam?")])
"""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from aegis.models import (
    ContentPart,
    ImagePart,
    Message,
    Metadata,
    ProviderType,
    Role,
    TextPart,
    Usage,
)
from aegis.providers.base import (
    HTTPProvider,
    ProviderCapabilities,
    WireErrorResponse,
    text_parts,
)
from aegis.providers.sse import ServerSentEvent

logger = logging.getLogger(__name__)

ANTHROPIC_API_URL = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"

CAPABILITIES = ProviderCapabilities(
    streaming=True,
    max_tokens=4096,
    supported_content_types=frozenset({"text", "image"}),
    models=(
        "claude-3-sonnet-20240229",
        "claude-3-opus-20240229",
        "claude-3-haiku-20240307",
    ),
)


# ============================================================================
# WIRE SCHEMAS
# ============================================================================


class AnthropicImageSource(BaseModel):
    type: str
    url: str | None = None
    media_type: str | None = None
    data: str | None = None


class AnthropicContentBlock(BaseModel):
    type: str
    text: str | None = None
    source: AnthropicImageSource | None = None


class AnthropicUsage(BaseModel):
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)


class AnthropicResponse(BaseModel):
    id: str
    model: str | None = None
    content: list[AnthropicContentBlock]
    usage: AnthropicUsage | None = None
    stop_reason: str | None = None


class AnthropicErrorDetail(BaseModel):
    type: str = ""
    message: str = ""


class AnthropicErrorResponse(WireErrorResponse):
    error: AnthropicErrorDetail

    def error_type(self) -> str | None:
        return self.error.type

    def error_message(self) -> str:
        return self.error.message


class AnthropicDelta(BaseModel):
    type: str | None = None
    text: str | None = None


class AnthropicStreamEvent(BaseModel):
    type: str
    delta: AnthropicDelta | None = None
    error: AnthropicErrorDetail | None = None


# ============================================================================
# PROVIDER
# ============================================================================


class AnthropicProvider(HTTPProvider):
    """Adapter for the Anthropic messages API."""

    default_base_url = ANTHROPIC_API_URL
    endpoint = "/v1/messages"
    success_schema = AnthropicResponse
    error_schema = AnthropicErrorResponse

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.ANTHROPIC

    def get_capabilities(self) -> ProviderCapabilities:
        return CAPABILITIES

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    def _build_payload(self, messages: Sequence[Message], stream: bool) -> dict[str, Any]:
        system_texts: list[str] = []
        wire_messages = []
        for message in messages:
            if message.role is Role.SYSTEM:
                system_texts.extend(text for text in text_parts(message.content) if text)
                continue
            blocks = [block for block in map(_to_content_block, message.content) if block]
            wire_messages.append({"role": message.role.value, "content": blocks})

        payload: dict[str, Any] = {
            "model": self._model,
            "messages": wire_messages,
            "max_tokens": self._max_tokens,
            "stream": stream,
        }
        if system_texts:
            payload["system"] = "\n\n".join(system_texts)
        return payload

    def _to_message(self, response: AnthropicResponse) -> Message:
        parts: list[ContentPart] = []
        for block in response.content:
            part = _from_content_block(block)
            if part is None:
                logger.debug(f"Skipping unsupported content block: {block.type}")
                continue
            parts.append(part)

        usage = None
        if response.usage is not None:
            usage = Usage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
            )

        logger.debug(f"Successfully parsed response with ID: {response.id}")
        return Message(
            role=Role.ASSISTANT,
            content=tuple(parts),
            metadata=Metadata(
                model=response.model or self._model,
                provider=self.name,
                usage=usage,
            ),
        )

    def _is_stream_end(self, event: ServerSentEvent) -> bool:
        return event.event == "message_stop"

    def _decode_event(self, event: ServerSentEvent) -> tuple[ContentPart, ...]:
        try:
            parsed = AnthropicStreamEvent.model_validate_json(event.data)
        except ValidationError:
            logger.debug(f"Skipping malformed stream event: {event.event}")
            return ()

        if parsed.type == "error" and parsed.error is not None:
            logger.warning(
                f"Stream error event from {self.name} - Type: {parsed.error.type}, "
                f"Message: {parsed.error.message}",
                extra={"provider": self.name},
            )
            return ()

        if parsed.type != "content_block_delta" or parsed.delta is None:
            return ()
        if not parsed.delta.text:
            return ()
        return (TextPart(parsed.delta.text),)


def _to_content_block(part: ContentPart) -> dict[str, Any] | None:
    if isinstance(part, TextPart):
        return {"type": "text", "text": part.text}
    if isinstance(part, ImagePart):
        return {"type": "image", "source": _image_source(part.image_url)}
    logger.debug(f"Dropping unsupported content part: {part.type}")
    return None


def _image_source(image_url: str) -> dict[str, str]:
    # data:<media_type>;base64,<payload>
    if image_url.startswith("data:"):
        header, _, data = image_url[len("data:") :].partition(",")
        media_type = header.split(";", 1)[0] or "image/png"
        return {"type": "base64", "media_type": media_type, "data": data}
    return {"type": "url", "url": image_url}


def _from_content_block(block: AnthropicContentBlock) -> ContentPart | None:
    if block.type == "text" and block.text is not None:
        return TextPart(block.text)
    if block.type == "image" and block.source is not None:
        source = block.source
        if source.url:
            return ImagePart(source.url)
        if source.data:
            media_type = source.media_type or "image/png"
            return ImagePart(f"data:{media_type};base64,{source.data}")
    return None
