"""
Fluxion Stream - Multicast Push Channels
========================================

This module provides the push primitives every other part of fluxion is built
on:

- **BroadcastStream**: multicast channel that replays its last value to new
  subscribers. A store's state lives behind one of these.
- **ActionChannel**: the same multicast channel used as a dispatch entry point.
  It never replays: a fresh subscriber only sees future actions.
- **Derived streams**: `map` and `distinct` views over another stream. They are
  cold: each subscriber gets its own subscription to the source, so deriving a
  stream never registers anything by itself.

Delivery is synchronous and happens on the emitter's call stack, in
subscription order. A callback that raises is isolated: the error is logged
and handed to the stream's `on_error` hook, and delivery continues with the
next subscriber.

Nested emissions
----------------

A `BroadcastStream` that is asked to emit while it is still delivering a
previous value queues the new value and delivers it once the current delivery
completes (breadth-first). Every subscriber therefore sees every value, in
emission order, even when a subscriber triggers a new emission.

An `ActionChannel` does not queue: publishing from inside a delivery delivers
the nested action immediately, on the same stack.

```python
from fluxion import BroadcastStream

counter = BroadcastStream(0)
seen = []
sub = counter.subscribe(seen.append)   # seen == [0] (replay)
counter.emit(1)                         # seen == [0, 1]
sub.release()
counter.emit(2)                         # seen unchanged
```
"""

import logging
from collections import deque
from typing import Any, Callable, Deque, Generic, List, Optional, TypeVar

from .subscription import Subscription
from .util.sentinels import ABSENT

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ErrorHandler = Callable[[Exception, Callable[[Any], Any]], Any]


# ============================================================================
# STREAM BASE
# ============================================================================


class Stream(Generic[T]):
    """
    Anything that can be subscribed to with a callback.

    Subclasses implement `subscribe`; the operators are shared.
    """

    def subscribe(self, callback: Callable[[T], Any]) -> Subscription:
        raise NotImplementedError

    def map(self, transform: Callable[[T], R]) -> "Stream[R]":
        """Derived stream applying `transform` to every value."""
        return MappedStream(self, transform)

    def distinct(self) -> "Stream[T]":
        """Derived stream dropping values unchanged from the previous one."""
        return DistinctStream(self)

    def __rshift__(self, transform: Callable[[T], R]) -> "Stream[R]":
        """`stream >> f` is `stream.map(f)`."""
        return self.map(transform)


class _Observer:
    __slots__ = ("callback", "active")

    def __init__(self, callback: Callable[[Any], Any]):
        self.callback = callback
        self.active = True


# ============================================================================
# BROADCAST STREAM
# ============================================================================


class BroadcastStream(Stream[T]):
    """
    Multicast stream with last-value replay.

    The observer list is replaced, never mutated in place, whenever a
    subscriber is added or released, so delivery always iterates over the
    list as it was when the value started being delivered. Observers released
    mid-delivery are skipped.
    """

    replay = True
    queue_nested = True

    def __init__(
        self,
        initial: Any = ABSENT,
        *,
        on_error: Optional[ErrorHandler] = None,
    ):
        self._observers: List[_Observer] = []
        self._value = initial if self.replay else ABSENT
        self._pending: Deque[Any] = deque()
        self._emitting = False
        self._on_error = on_error

    @property
    def has_value(self) -> bool:
        return self._value is not ABSENT

    @property
    def value(self) -> T:
        """Last delivered value."""
        if self._value is ABSENT:
            raise LookupError(f"{type(self).__name__} has not emitted a value yet")
        return self._value

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def subscribe(self, callback: Callable[[T], Any]) -> Subscription:
        """
        Register `callback` and replay the last value to it, if there is one.

        Returns:
            Subscription whose release() removes the callback.
        """
        observer = _Observer(callback)
        self._observers = self._observers + [observer]
        subscription = Subscription(lambda: self._remove(observer))

        if self.replay and self._value is not ABSENT:
            if self._emitting:
                self._notify(observer, self._value)
            else:
                # Anything the replayed callback emits is queued behind it
                self._emitting = True
                try:
                    self._notify(observer, self._value)
                finally:
                    self._emitting = False
                self._drain()

        return subscription

    def emit(self, value: T) -> None:
        """Deliver `value` to every current subscriber."""
        if not self.queue_nested:
            self._deliver(value)
            return
        self._pending.append(value)
        self._drain()

    def _drain(self) -> None:
        if self._emitting:
            return
        self._emitting = True
        try:
            while self._pending:
                self._deliver(self._pending.popleft())
        finally:
            self._emitting = False

    def _deliver(self, value: T) -> None:
        if self.replay:
            self._value = value
        for observer in self._observers:
            if observer.active:
                self._notify(observer, value)

    def _notify(self, observer: _Observer, value: T) -> None:
        try:
            observer.callback(value)
        except Exception as error:
            logger.exception(
                f"Error in subscriber {observer.callback!r} of {self!r}: {error}"
            )
            if self._on_error is not None:
                try:
                    self._on_error(error, observer.callback)
                except Exception:
                    logger.exception(f"Error in on_error hook of {self!r}")

    def _remove(self, observer: _Observer) -> None:
        observer.active = False
        self._observers = [o for o in self._observers if o is not observer]

    def __repr__(self) -> str:
        value = repr(self._value) if self._value is not ABSENT else "<empty>"
        return f"{type(self).__name__}({value}, observers={len(self._observers)})"


# ============================================================================
# ACTION CHANNEL
# ============================================================================


class ActionChannel(BroadcastStream[T]):
    """
    Dispatch entry point: producers call `next`, reducers subscribe.

    Never replays past actions and delivers nested publications immediately.
    `on_next` is provided so the channel can stand in wherever an observer is
    expected.
    """

    replay = False
    queue_nested = False

    def __init__(
        self,
        *,
        name: Optional[str] = None,
        on_error: Optional[ErrorHandler] = None,
    ):
        super().__init__(on_error=on_error)
        self.name = name

    def next(self, payload: Any = None) -> None:
        self.emit(payload)

    on_next = next

    def __repr__(self) -> str:
        label = f"{self.name!r}, " if self.name else ""
        return f"ActionChannel({label}observers={len(self._observers)})"


# ============================================================================
# DERIVED STREAMS
# ============================================================================


class MappedStream(Stream[R]):
    """Cold view applying a transform to every value of its source."""

    def __init__(self, source: Stream[Any], transform: Callable[[Any], R]):
        self._source = source
        self._transform = transform

    def subscribe(self, callback: Callable[[R], Any]) -> Subscription:
        transform = self._transform

        def on_value(value):
            callback(transform(value))

        return self._source.subscribe(on_value)

    def __repr__(self) -> str:
        return f"MappedStream({self._source!r})"


_SCALAR_TYPES = (int, float, complex, str, bytes, bool, type(None))


def _same_value(value: Any, last: Any) -> bool:
    if value is last:
        return True
    # Scalars are compared by value; containers by identity only.
    return (
        type(value) is type(last) and type(value) in _SCALAR_TYPES and value == last
    )


class DistinctStream(Stream[T]):
    """
    Cold view suppressing consecutive values that are unchanged.

    Containers are compared by identity, which matches copy-on-write updates
    where untouched branches keep their identity. Scalars (numbers, strings,
    bytes, None) are compared by value, so a rebuilt but equal scalar does
    not count as a change.
    """

    def __init__(self, source: Stream[T]):
        self._source = source

    def subscribe(self, callback: Callable[[T], Any]) -> Subscription:
        last = [ABSENT]

        def on_value(value):
            if _same_value(value, last[0]):
                return
            last[0] = value
            callback(value)

        return self._source.subscribe(on_value)

    def __repr__(self) -> str:
        return f"DistinctStream({self._source!r})"
