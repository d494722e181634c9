"""Core configuration for Chorus Governance."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
