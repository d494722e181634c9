# src/chorus_governance/schemas/__init__.py
"""
Pydantic schemas for relay events, event content and API responses.

These schemas define the structure of data at the service boundaries.
"""

from .event import EventDraft, RelayEvent

__all__ = ["EventDraft", "RelayEvent"]
