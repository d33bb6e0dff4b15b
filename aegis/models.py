"""
Provider-neutral conversation model.

Every provider adapter converts to and from these types, so application
code never touches a backend's wire format.

Usage:
    from aegis.models import Message, TextPart, ImagePart, Role

    conversation = [
        Message.system("You are terse."),
        Message(role=Role.USER, content=[TextPart("What is this?"), ImagePart(url)]),
    ]
    reply = await gateway.send(ProviderType.ANTHROPIC, conversation)
    print(reply.text)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


class Role(str, Enum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ProviderType(str, Enum):
    """Identifies a backend. Used as the gateway lookup key."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"

    @classmethod
    def from_name(cls, name: str) -> "ProviderType":
        """Parse a case-insensitive provider name (e.g. "Anthropic", "openai").

        Raises:
            ValueError: If the name does not match a known provider
        """
        normalized = name.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        available = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown provider: {name}. Available: {available}")


@dataclass(frozen=True)
class ContentPart:
    """Base class for one piece of message content.

    Subclasses set ``type`` to a stable discriminator string that matches the
    entries of ``ProviderCapabilities.supported_content_types``.
    """

    type: ClassVar[str] = "unknown"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"type": self.type}


@dataclass(frozen=True)
class TextPart(ContentPart):
    """Plain text content."""

    type: ClassVar[str] = "text"

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class ImagePart(ContentPart):
    """Image referenced by an http(s) URL or a ``data:`` URI."""

    type: ClassVar[str] = "image"

    image_url: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "image_url": self.image_url}


@dataclass(frozen=True)
class Usage:
    """Token accounting reported by a provider."""

    prompt_tokens: int
    completion_tokens: int

    def __post_init__(self) -> None:
        if self.prompt_tokens < 0 or self.completion_tokens < 0:
            raise ValueError(
                f"Token counts must be non-negative, got prompt={self.prompt_tokens} "
                f"completion={self.completion_tokens}"
            )

    @property
    def total_tokens(self) -> int:
        """Total tokens used."""
        return self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True)
class Metadata:
    """Details attached to a complete assistant message returned by an adapter."""

    model: str
    provider: str
    usage: Usage | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "provider": self.provider,
            "usage": self.usage.to_dict() if self.usage else None,
        }


@dataclass(frozen=True)
class Message:
    """One conversational turn.

    Messages are immutable: build a new one for every turn. ``content`` may be
    passed as any sequence and is stored as a tuple.
    """

    role: Role
    content: tuple[ContentPart, ...] = field(default_factory=tuple)
    metadata: Metadata | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.content, tuple):
            object.__setattr__(self, "content", tuple(self.content))

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=Role.USER, content=(TextPart(text),))

    @classmethod
    def assistant(cls, text: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=(TextPart(text),))

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(role=Role.SYSTEM, content=(TextPart(text),))

    @property
    def text(self) -> str:
        """Concatenated text of all text parts, in order.

        Image and other non-text parts are ignored. For display only.
        """
        return "".join(part.text for part in self.content if isinstance(part, TextPart))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "role": self.role.value,
            "content": [part.to_dict() for part in self.content],
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }


# Caller-owned, append-only during a session
Conversation = list[Message]
