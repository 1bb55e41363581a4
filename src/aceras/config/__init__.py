"""Configuration package."""

from aceras.config.settings import Settings

__all__ = ["Settings"]
