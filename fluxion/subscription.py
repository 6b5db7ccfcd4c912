"""
Fluxion Subscription - Releasable Handles
=========================================

Every subscribe/add_reducer call returns a `Subscription`. Releasing it is the
only cancellation primitive in fluxion: synchronous, immediate and idempotent.

A subscription can also collect teardowns of its own (callables or other
releasable handles) and runs each of them exactly once on release, which
makes it usable as a composite cleanup handle:

```python
cleanup = Subscription()
cleanup.add(lambda: print("released"))
cleanup.add(store.add_reducer(channel, reducer))
cleanup.release()  # prints "released" and unbinds the reducer
```

Handles coming from other reactive libraries (reactivex disposables, plain
unsubscribe callables) are adapted with `as_releasable`.
"""

import logging
from typing import Any, Callable, List, Optional, Union

logger = logging.getLogger(__name__)

Teardown = Union[Callable[[], Any], "Subscription"]


class Subscription:
    """
    Releasable handle with optional composite teardowns.

    The handle is callable, so it can be used wherever an unsubscribe
    function is expected.
    """

    __slots__ = ("_teardowns", "_closed")

    def __init__(self, teardown: Optional[Teardown] = None):
        self._teardowns: List[Teardown] = []
        self._closed = False
        if teardown is not None:
            self._teardowns.append(teardown)

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, teardown: Any) -> "Subscription":
        """
        Register a teardown to run when this subscription is released.

        Accepts callables, `Subscription` instances and foreign handles
        understood by `as_releasable`. If the subscription is already
        released the teardown runs immediately.
        """
        if teardown is None or teardown is self:
            return self
        handle = teardown if callable(teardown) else as_releasable(teardown)
        if self._closed:
            _run_teardown(handle)
        else:
            self._teardowns.append(handle)
        return self

    def remove(self, teardown: Teardown) -> None:
        """Forget a teardown without running it."""
        try:
            self._teardowns.remove(teardown)
        except ValueError:
            pass

    def release(self) -> None:
        """Release this subscription. Calling it again does nothing."""
        if self._closed:
            return
        self._closed = True
        teardowns, self._teardowns = self._teardowns, []
        for teardown in teardowns:
            _run_teardown(teardown)

    # Alias used by rxjs-style code
    unsubscribe = release

    def __call__(self) -> None:
        self.release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self._teardowns)} teardowns"
        return f"Subscription({state})"


def _run_teardown(teardown: Teardown) -> None:
    # A failing teardown must not stop the remaining ones from running
    try:
        teardown()
    except Exception:
        logger.exception(f"Error while releasing {teardown!r}")


def as_releasable(handle: Any) -> Subscription:
    """
    Adapt a subscription handle from any source to a `Subscription`.

    Understands, in order: `Subscription` itself, objects with `release()`,
    `dispose()` (reactivex) or `unsubscribe()`, and plain callables (the
    unsubscribe-function convention). `None` yields an already usable empty
    subscription.
    """
    if isinstance(handle, Subscription):
        return handle
    if handle is None:
        return Subscription()
    for method_name in ("release", "dispose", "unsubscribe"):
        method = getattr(handle, method_name, None)
        if callable(method):
            return Subscription(method)
    if callable(handle):
        return Subscription(handle)
    raise TypeError(f"Cannot release object of type {type(handle).__name__}")
