# src/chorus_governance/api/__init__.py
"""HTTP API for Chorus Governance."""
