from __future__ import annotations

from typing import Iterable

from price_proxy.services.errors import ErrorKind, ProviderError


class KeyRotator:
    """
    Round-robin over a fixed pool of API keys.

    Every call to ``next_key`` moves the cursor one slot forward (wrapping)
    and returns the key it lands on, so with the default ``start=0`` the
    first key handed out is ``keys[1]``. The cursor is shared by every
    request that holds this instance; it is not locked.
    """

    def __init__(self, keys: Iterable[str], start: int = 0):
        self._keys = tuple(keys)
        self._index = start % len(self._keys) if self._keys else 0

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def position(self) -> int:
        return self._index

    def next_key(self) -> str:
        if not self._keys:
            raise ProviderError(
                ErrorKind.CREDENTIALS_EXHAUSTED, "No API keys configured"
            )
        self._index = (self._index + 1) % len(self._keys)
        return self._keys[self._index]
