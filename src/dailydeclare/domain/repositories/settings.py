"""Key-value store protocol."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Protocol


class KeyValueStore(Protocol):
    """String-valued persisted store shared by the counter and the reminders."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None when the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a single value."""
        ...

    def multi_get(self, keys: Iterable[str]) -> dict[str, Optional[str]]:
        """Return a value (or None) for every requested key."""
        ...

    def multi_set(self, values: Mapping[str, str]) -> None:
        """Store every pair together or none of them."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
        ...

    def delete_many(self, keys: Iterable[str]) -> None:
        """Remove several keys in one transaction."""
        ...

    def clear(self) -> None:
        """Remove every key."""
        ...
