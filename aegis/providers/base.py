"""
Base classes for model providers.

This module defines the interface every provider adapter implements and the
HTTP plumbing the concrete adapters share. The interface is designed to be:
- Minimal: identity, capabilities, send, stream
- Uniform: one error taxonomy and one response classification for all backends
- Lazy: streaming returns fragments as the bytes arrive

Response classification (identical for every backend):
    429 -> RateLimitExceededError
    401 -> InvalidAPIKeyError
    200 -> parse success schema, APIError if it does not match
    *   -> parse error schema into APIError, raw status/body if that fails
    transport failure -> NetworkError
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Awaitable, Callable, Iterable, Sequence
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, ClassVar

import httpx
from pydantic import BaseModel, ValidationError

from aegis.exceptions import (
    APIError,
    InvalidAPIKeyError,
    NetworkError,
    RateLimitExceededError,
)
from aegis.models import ContentPart, Message, ProviderType, Role, TextPart
from aegis.providers.sse import ServerSentEvent, aiter_sse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderCapabilities:
    """Static limits of a provider adapter.

    ``models`` is ordered; the first entry is the default model.
    """

    streaming: bool = True
    max_tokens: int = 4096
    supported_content_types: frozenset[str] = field(default_factory=lambda: frozenset({"text"}))
    models: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.supported_content_types, frozenset):
            object.__setattr__(
                self, "supported_content_types", frozenset(self.supported_content_types)
            )
        if not isinstance(self.models, tuple):
            object.__setattr__(self, "models", tuple(self.models))

    @property
    def default_model(self) -> str | None:
        return self.models[0] if self.models else None

    def supports(self, content_type: str) -> bool:
        """Whether parts of this type survive marshalling to the backend."""
        return content_type in self.supported_content_types


class MessageStream:
    """Lazy, forward-only sequence of assistant fragments.

    Each fragment is an assistant Message carrying only the newly produced
    parts, without metadata. The stream cannot be restarted. Closing it,
    explicitly or by leaving an ``async with`` block, closes the underlying
    HTTP response even if no fragment was read yet.

    Example:
        async with await gateway.stream(ProviderType.OPENAI, messages) as stream:
            async for fragment in stream:
                print(fragment.text, end="", flush=True)
    """

    def __init__(
        self,
        fragments: AsyncGenerator[Message, None],
        on_close: Callable[[], Awaitable[None]] | None = None,
    ):
        """Wrap a fragment generator.

        Args:
            fragments: Async generator producing the fragments
            on_close: Releases the underlying resource; awaited by ``aclose``
                since an unstarted generator never runs its own cleanup
        """
        self._fragments = fragments
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "MessageStream":
        return self

    async def __anext__(self) -> Message:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._fragments.__anext__()
        except BaseException:
            # Exhausted or failed: the generator has already released the response
            self._closed = True
            raise

    async def aclose(self) -> None:
        """Stop the stream and close the connection. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._fragments.aclose()
        finally:
            if self._on_close is not None:
                await self._on_close()

    async def __aenter__(self) -> "MessageStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def collect(self) -> Message:
        """Drain the stream into one assistant Message with all parts in order."""
        parts: list[ContentPart] = []
        async with self:
            async for fragment in self:
                parts.extend(fragment.content)
        return Message(role=Role.ASSISTANT, content=tuple(parts))


class Provider(ABC):
    """Abstract base class for provider adapters.

    Adapters are built once and shared; they hold no per-conversation state.

    Example:
        provider = AnthropicProvider(api_key="...")
        reply = await provider.send([Message.user("Say hi")])
        print(reply.text, reply.metadata.usage.total_tokens)
    """

    @property
    @abstractmethod
    def provider_type(self) -> ProviderType:
        """Identity of the backend this adapter talks to."""
        pass

    @property
    def name(self) -> str:
        """Provider name used in logs, errors and metadata."""
        return self.provider_type.value

    @abstractmethod
    def get_capabilities(self) -> ProviderCapabilities:
        """Return the static capabilities of this adapter."""
        pass

    @abstractmethod
    async def send(self, messages: Sequence[Message]) -> Message:
        """Send a conversation and wait for one complete assistant reply.

        Args:
            messages: The conversation so far. An empty sequence is forwarded
                as-is; whether the backend accepts it is up to the backend.

        Returns:
            Assistant Message with metadata attached

        Raises:
            RateLimitExceededError: HTTP 429
            InvalidAPIKeyError: HTTP 401
            APIError: Any other failure status, or an unparseable success body
            NetworkError: Transport failure
        """
        pass

    @abstractmethod
    async def stream(self, messages: Sequence[Message]) -> MessageStream:
        """Start a streaming request.

        Fails fast: errors that happen before the first byte of the body are
        raised here, with the same classification as ``send``. A transport
        failure later on is raised as NetworkError from the stream itself.

        Returns:
            MessageStream of assistant fragments
        """
        pass

    async def aclose(self) -> None:
        """Release network resources held by the adapter."""
        return None


class WireErrorResponse(BaseModel):
    """Base for backend error envelopes."""

    def error_type(self) -> str | None:
        raise NotImplementedError

    def error_message(self) -> str:
        raise NotImplementedError


class HTTPProvider(Provider):
    """Provider talking to a JSON-over-HTTP backend.

    Subclasses supply the endpoint, headers, pydantic schemas and the
    conversions between the Message model and the wire format; this class
    owns the request lifecycle and the response classification.
    """

    default_base_url: ClassVar[str]
    endpoint: ClassVar[str]
    success_schema: ClassVar[type[BaseModel]]
    error_schema: ClassVar[type[WireErrorResponse]]

    def __init__(
        self,
        api_key: str,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the adapter.

        Args:
            api_key: Backend API key
            model: Model to request (default: first model in capabilities)
            max_tokens: Reply token limit (default: capabilities max_tokens)
            base_url: Override the backend base URL (proxies, tests)
            http_client: Shared httpx client; created lazily when omitted
        """
        if not api_key:
            raise ValueError(f"{type(self).__name__} requires an API key")
        self._api_key = api_key
        capabilities = self.get_capabilities()
        self._model = model or capabilities.default_model
        self._max_tokens = max_tokens or capabilities.max_tokens
        self._base_url = (base_url or self.default_base_url).rstrip("/")
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def model_id(self) -> str:
        """The model sent with every request."""
        return self._model

    @property
    def url(self) -> str:
        return f"{self._base_url}{self.endpoint}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Backend-specific hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _headers(self) -> dict[str, str]:
        """Auth and content-type headers for every request."""
        pass

    @abstractmethod
    def _build_payload(self, messages: Sequence[Message], stream: bool) -> dict[str, Any]:
        """Convert the conversation to the backend request body."""
        pass

    @abstractmethod
    def _to_message(self, response: BaseModel) -> Message:
        """Convert a parsed success body to an assistant Message."""
        pass

    @abstractmethod
    def _decode_event(self, event: ServerSentEvent) -> tuple[ContentPart, ...]:
        """Extract the content delta carried by one stream event, if any."""
        pass

    @abstractmethod
    def _is_stream_end(self, event: ServerSentEvent) -> bool:
        """Whether the event signals that the backend finished the reply."""
        pass

    # ------------------------------------------------------------------
    # Request lifecycle
    # ------------------------------------------------------------------

    async def send(self, messages: Sequence[Message]) -> Message:
        payload = self._build_payload(messages, stream=False)
        logger.debug(
            f"Sending {len(messages)} message(s) to {self.name}",
            extra={"provider": self.name, "model": self._model},
        )

        try:
            response = await self._get_client().post(
                self.url, headers=self._headers(), json=payload
            )
        except httpx.RequestError as e:
            raise self._network_error(e) from e

        parsed = self._classify_response(response.status_code, response.text, response.headers)
        message = self._to_message(parsed)
        logger.debug(
            f"Received {len(message.content)} content part(s) from {self.name}",
            extra={"provider": self.name, "model": self._model},
        )
        return message

    async def stream(self, messages: Sequence[Message]) -> MessageStream:
        payload = self._build_payload(messages, stream=True)
        headers = {**self._headers(), "Accept": "text/event-stream"}
        client = self._get_client()
        request = client.build_request("POST", self.url, headers=headers, json=payload)
        logger.debug(
            f"Streaming {len(messages)} message(s) to {self.name}",
            extra={"provider": self.name, "model": self._model},
        )

        try:
            response = await client.send(request, stream=True)
        except httpx.RequestError as e:
            raise self._network_error(e) from e

        if response.status_code != 200:
            try:
                body = await response.aread()
            except httpx.RequestError as e:
                raise self._network_error(e) from e
            finally:
                await response.aclose()
            # Never returns for a non-200 status
            self._classify_response(
                response.status_code, body.decode("utf-8", errors="replace"), response.headers
            )

        return MessageStream(self._iter_fragments(response), on_close=response.aclose)

    async def _iter_fragments(self, response: httpx.Response) -> AsyncGenerator[Message, None]:
        try:
            async with aclosing(aiter_sse(response.aiter_bytes())) as events:
                async for event in events:
                    if self._is_stream_end(event):
                        return
                    parts = self._decode_event(event)
                    if parts:
                        yield Message(role=Role.ASSISTANT, content=parts)
        except httpx.RequestError as e:
            raise self._network_error(e) from e
        finally:
            await response.aclose()

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _classify_response(
        self, status_code: int, body: str, headers: httpx.Headers | None = None
    ) -> BaseModel:
        """Map a status/body pair to a parsed success body or a taxonomy error."""
        if status_code == 429:
            retry_after = _parse_retry_after(headers)
            logger.error(
                f"Rate limit exceeded for {self.name}",
                extra={"provider": self.name, "status_code": status_code},
            )
            raise RateLimitExceededError(provider=self.name, retry_after=retry_after)

        if status_code == 401:
            logger.error(
                f"Invalid API key for {self.name}",
                extra={"provider": self.name, "status_code": status_code},
            )
            raise InvalidAPIKeyError(provider=self.name)

        if status_code == 200:
            try:
                return self.success_schema.model_validate_json(body)
            except ValidationError as e:
                logger.error(
                    f"Failed to parse successful response from {self.name}: {e}",
                    extra={"provider": self.name, "status_code": status_code},
                )
                raise APIError(
                    f"Failed to parse response: {e}",
                    provider=self.name,
                    status_code=status_code,
                    details={"body": body},
                ) from e

        raise self._api_error(status_code, body)

    def _api_error(self, status_code: int, body: str) -> APIError:
        try:
            error = self.error_schema.model_validate_json(body)
        except ValidationError:
            logger.error(
                f"Unexpected response from {self.name}: Status {status_code}, Body: {body}",
                extra={"provider": self.name, "status_code": status_code},
            )
            return APIError(
                f"Status: {status_code}, Body: {body}",
                provider=self.name,
                status_code=status_code,
            )

        error_type = error.error_type()
        logger.error(
            f"API error from {self.name} - Type: {error_type}, Message: {error.error_message()}",
            extra={"provider": self.name, "status_code": status_code},
        )
        return APIError(
            f"Type: {error_type}, Message: {error.error_message()}",
            error_type=error_type,
            provider=self.name,
            status_code=status_code,
        )

    def _network_error(self, exc: httpx.RequestError) -> NetworkError:
        logger.error(
            f"Network error talking to {self.name}: {exc!r}",
            extra={"provider": self.name},
        )
        return NetworkError(f"Network error: {exc}", provider=self.name)


def _parse_retry_after(headers: httpx.Headers | None) -> float | None:
    if headers is None:
        return None
    value = headers.get("retry-after")
    try:
        return float(value) if value is not None else None
    except ValueError:
        # HTTP-date form is not interpreted
        return None


def text_parts(parts: Iterable[ContentPart]) -> list[str]:
    """Text of the text parts among ``parts``, in order."""
    return [part.text for part in parts if isinstance(part, TextPart)]


__all__ = [
    "HTTPProvider",
    "MessageStream",
    "Provider",
    "ProviderCapabilities",
    "WireErrorResponse",
    "text_parts",
]
