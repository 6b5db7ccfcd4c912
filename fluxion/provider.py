"""
Store Provider
==============

Ambient store lookup for connected components. The store engine knows
nothing about this module; only `fluxion.connect` reads it.

The provider is a context manager over a `ContextVar`, so it nests and is
isolated per thread and per asyncio task:

```python
with StoreProvider(store):
    component = ConnectedGreeting(name="Ada").mount()  # finds `store`
```

Components may also receive their store explicitly with `mount(store=...)`.
"""

from contextvars import ContextVar, Token
from typing import Any, List, Optional

_current_store: ContextVar[Optional[Any]] = ContextVar("fluxion_store", default=None)


def current_store() -> Optional[Any]:
    """Store made available by the innermost active `StoreProvider`, if any."""
    return _current_store.get()


class StoreProvider:
    """Makes `store` the ambient store while the `with` block runs."""

    def __init__(self, store: Any):
        self.store = store
        self._tokens: List[Token] = []

    def __enter__(self) -> "StoreProvider":
        self._tokens.append(_current_store.set(self.store))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _current_store.reset(self._tokens.pop())

    def __repr__(self) -> str:
        return f"StoreProvider({self.store!r})"
