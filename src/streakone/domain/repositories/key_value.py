"""Key/value store protocol."""

from __future__ import annotations

from typing import Optional, Protocol


class KeyValueStore(Protocol):
    """A store of string values addressed by string keys.

    Implementations raise on I/O failure; the streak repository is the layer
    that turns those failures into fallbacks.
    """

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is unset."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Replace the value stored under ``key`` in one write."""
        ...

    def remove_item(self, key: str) -> None:
        """Remove ``key``; removing an unset key is a no-op."""
        ...
