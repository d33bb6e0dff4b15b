"""
Configuration module.

Usage:
    from aegis.config import AegisConfig

    config = AegisConfig.from_env()
    if config.is_empty():
        raise SystemExit("Set ANTHROPIC_API_KEY or OPENAI_API_KEY")
"""

from aegis.config.settings import AegisConfig

__all__ = ["AegisConfig"]
