"""Supersede-on-new-call guard shared by view loads and debounced search."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")


class Superseded(Exception):
    """Raised to a caller whose call was overtaken by a newer one."""


class LatestCallGuard:
    """Tag calls with increasing sequence numbers and keep only the latest.

    ``run`` takes its sequence number synchronously, so the order in which
    calls start decides which one wins, not the order in which they finish.
    With a positive ``delay`` the call waits first and is dropped without
    running if a newer call arrives meanwhile (debounce).
    """

    def __init__(self, delay: float = 0.0):
        self._delay = max(0.0, delay)
        self._sequence = 0

    @property
    def sequence(self) -> int:
        return self._sequence

    def begin(self) -> int:
        self._sequence += 1
        return self._sequence

    def is_current(self, token: int) -> bool:
        return token == self._sequence

    async def run(
        self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any
    ) -> T:
        token = self.begin()
        if self._delay:
            await asyncio.sleep(self._delay)
            if not self.is_current(token):
                raise Superseded(token)
        result = await func(*args, **kwargs)
        if not self.is_current(token):
            raise Superseded(token)
        return result
