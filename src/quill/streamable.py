"""Single-writer progress channels with a terminal done state.

A streamable is owned by exactly one producer. Consumers get a read-only
`StreamView` that can be attached at any time: iterating it yields the
current value first and then every later version the consumer gets to see,
ending once the producer marks the stream done. Versions published faster
than a consumer reads them are coalesced into the latest one.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any, Generic, TypeVar

from quill.errors import InvalidStateError

T = TypeVar("T")

_UNSET: Any = object()


class _Channel(Generic[T]):
    """Shared state between one writer and its views."""

    def __init__(self, name: str, initial: T) -> None:
        self.name = name
        self.value = initial
        self.version = 0
        self.done = False
        self._changed = asyncio.Event()

    def publish(self, value: T) -> None:
        self.value = value
        self.version += 1
        self._notify()

    def close(self) -> None:
        self.done = True
        self._notify()

    async def wait_for_change(self, version: int) -> None:
        while self.version == version and not self.done:
            await self._changed.wait()

    def _notify(self) -> None:
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()


class StreamView(Generic[T]):
    """Read-only handle over one streamable."""

    def __init__(self, channel: _Channel[T]) -> None:
        self._channel = channel

    @property
    def name(self) -> str:
        return self._channel.name

    @property
    def value(self) -> T:
        return self._channel.value

    @property
    def done(self) -> bool:
        return self._channel.done

    @property
    def version(self) -> int:
        return self._channel.version

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        channel = self._channel
        seen = -1
        while True:
            if channel.version != seen:
                seen = channel.version
                yield channel.value
                continue
            if channel.done:
                return
            await channel.wait_for_change(seen)

    async def wait(self) -> T:
        """Wait until the producer marks the stream done and return the final value."""
        channel = self._channel
        while not channel.done:
            await channel.wait_for_change(channel.version)
        return channel.value

    def __repr__(self) -> str:
        state = "done" if self.done else "live"
        return f"StreamView(name={self.name!r}, version={self.version}, {state})"


class _Streamable(Generic[T]):
    def __init__(self, name: str, initial: T) -> None:
        self._channel: _Channel[T] = _Channel(name, initial)
        self._view = StreamView(self._channel)

    @property
    def view(self) -> StreamView[T]:
        return self._view

    @property
    def value(self) -> T:
        return self._channel.value

    @property
    def is_done(self) -> bool:
        return self._channel.done

    def _ensure_open(self, operation: str) -> None:
        if self._channel.done:
            raise InvalidStateError(f"{self._channel.name} stream is already done; {operation} rejected")


class StreamableValue(_Streamable[T]):
    """Incremental scalar value."""

    def __init__(self, initial: T, *, name: str = "value") -> None:
        super().__init__(name, initial)

    def update(self, value: T) -> None:
        self._ensure_open("update")
        self._channel.publish(value)

    def done(self, value: T = _UNSET) -> None:
        self._ensure_open("done")
        if value is not _UNSET:
            self._channel.publish(value)
        self._channel.close()


class StreamableUI(_Streamable[tuple[Any, ...]]):
    """Incremental node list.

    `update` replaces the newest slot only. `append` opens a new slot after
    everything shown so far and makes it the replace target, so earlier
    sections can no longer be touched. Updating with None clears the newest
    slot.
    """

    def __init__(self, initial: Any = None, *, name: str = "ui") -> None:
        self._slots: list[Any] = [initial]
        super().__init__(name, self._snapshot())

    def update(self, node: Any) -> None:
        self._ensure_open("update")
        self._slots[-1] = node
        self._channel.publish(self._snapshot())

    def append(self, node: Any) -> None:
        self._ensure_open("append")
        self._slots.append(node)
        self._channel.publish(self._snapshot())

    def done(self, node: Any = _UNSET) -> None:
        self._ensure_open("done")
        if node is not _UNSET:
            self._slots[-1] = node
            self._channel.publish(self._snapshot())
        self._channel.close()

    def _snapshot(self) -> tuple[Any, ...]:
        return tuple(node for node in self._slots if node is not None)
