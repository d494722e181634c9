"""Chorus Governance: community governance state projected from relay events."""

__version__ = "0.1.0"
