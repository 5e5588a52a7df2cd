"""Repository protocols."""

from .settings import KeyValueStore

__all__ = ["KeyValueStore"]
