"""
Fluxion Errors
==============

Exception types raised by the store and the binding layer.

Subscriber faults are not represented here: a callback that raises during an
emission is isolated and reported through the stream's error hook instead.
"""


class FluxionError(Exception):
    """Base class for all fluxion errors."""

    pass


class ActionMapError(FluxionError, TypeError):
    """An action map entry is neither a channel, a callable nor None."""

    def __init__(self, name: str, target: object):
        self.name = name
        self.target = target
        super().__init__(
            f"Invalid action map entry {name!r}: expected a channel, a callable "
            f"or None, got {type(target).__name__}"
        )


class ReentrantDispatchError(FluxionError, RuntimeError):
    """A reducer dispatched an action while it was being executed."""

    pass


class StoreDestroyedError(FluxionError, RuntimeError):
    """Operation attempted on a store after destroy() was called."""

    pass
