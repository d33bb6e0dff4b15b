"""
Gateway configuration.

Holds the credentials (and optional model overrides) the gateway uses to
decide which provider adapters to build. A provider without a key is simply
not configured.

Usage:
    from aegis.config import AegisConfig

    # Builder style
    config = AegisConfig().with_anthropic(key).with_openai("")  # openai stays off

    # From the process environment
    config = AegisConfig.from_env()

    # From YAML
    config = AegisConfig.from_yaml(Path("aegis.yaml"))

YAML layout:
    anthropic:
      api_key: sk-ant-...
      model: claude-3-haiku-20240307
    openai:
      api_key: sk-...
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from aegis.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ANTHROPIC_API_KEY_ENV = "ANTHROPIC_API_KEY"
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
ANTHROPIC_MODEL_ENV = "AEGIS_ANTHROPIC_MODEL"
OPENAI_MODEL_ENV = "AEGIS_OPENAI_MODEL"


def _non_empty(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class AegisConfig:
    """Credentials and model overrides for each provider.

    Attributes:
        anthropic_api_key: Anthropic API key, or None when not configured
        openai_api_key: OpenAI API key, or None when not configured
        anthropic_model: Model override for Anthropic (adapter default if None)
        openai_model: Model override for OpenAI (adapter default if None)
    """

    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    anthropic_model: str | None = None
    openai_model: str | None = None

    def with_anthropic(self, key: str, model: str | None = None) -> "AegisConfig":
        """Return a copy with the Anthropic key set. An empty key disables it."""
        return replace(
            self,
            anthropic_api_key=_non_empty(key),
            anthropic_model=_non_empty(model) or self.anthropic_model,
        )

    def with_openai(self, key: str, model: str | None = None) -> "AegisConfig":
        """Return a copy with the OpenAI key set. An empty key disables it."""
        return replace(
            self,
            openai_api_key=_non_empty(key),
            openai_model=_non_empty(model) or self.openai_model,
        )

    def is_empty(self) -> bool:
        """True when no provider has a key."""
        return self.anthropic_api_key is None and self.openai_api_key is None

    def __repr__(self) -> str:
        # Keys are masked so configs can be logged safely
        return (
            f"AegisConfig(anthropic_api_key={'[SET]' if self.anthropic_api_key else None}, "
            f"openai_api_key={'[SET]' if self.openai_api_key else None}, "
            f"anthropic_model={self.anthropic_model!r}, openai_model={self.openai_model!r})"
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AegisConfig":
        """Build a config from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            AegisConfig with whatever keys were present
        """
        env = os.environ if environ is None else environ
        config = cls(
            anthropic_api_key=_non_empty(env.get(ANTHROPIC_API_KEY_ENV)),
            openai_api_key=_non_empty(env.get(OPENAI_API_KEY_ENV)),
            anthropic_model=_non_empty(env.get(ANTHROPIC_MODEL_ENV)),
            openai_model=_non_empty(env.get(OPENAI_MODEL_ENV)),
        )
        logger.debug(f"Loaded configuration from environment: {config!r}")
        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "AegisConfig":
        """Build a config from a YAML file.

        Args:
            path: Path to the YAML file

        Returns:
            AegisConfig populated from the ``anthropic`` and ``openai`` sections

        Raises:
            ConfigurationError: If the file cannot be read or is malformed
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")

        sections = {}
        for name in ("anthropic", "openai"):
            section = data.get(name) or {}
            if not isinstance(section, dict):
                raise ConfigurationError(f"Section '{name}' in {path} must be a mapping")
            sections[name] = section

        config = cls(
            anthropic_api_key=_non_empty(sections["anthropic"].get("api_key")),
            openai_api_key=_non_empty(sections["openai"].get("api_key")),
            anthropic_model=_non_empty(sections["anthropic"].get("model")),
            openai_model=_non_empty(sections["openai"].get("model")),
        )
        logger.info(f"Loaded configuration from {path}: {config!r}")
        return config
