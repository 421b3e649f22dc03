"""Shared settings, logging, persistence and text utilities."""
