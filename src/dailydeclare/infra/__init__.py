"""Persistence and platform adapters."""
