"""Newsroom: AI article generation and support triage services."""

__version__ = "0.1.0"
