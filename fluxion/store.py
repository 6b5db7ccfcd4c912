"""
Fluxion Store - Observable State Containers
===========================================

A `Store` owns one state value and is the single source of truth for it.
State changes only through reducers: pure functions `(state, payload) ->
new_state` bound to an action channel with `add_reducer`. Every time a bound
channel publishes, the reducer runs and its result replaces the state, which
is then pushed to every stream derived with `select` or `watch`.

Slices
------

`create_slice(key)` returns a store scoped to `state[key]`. A slice has no
storage of its own: reading goes through the parent, and a reducer added to a
slice is lifted into a reducer on the parent that writes the new sub-state
back with a copy-on-write merge, so sibling keys are preserved. Slices can be
sliced again. `create_projection(forward, backward)` is the general form for
views that are not a single key.

```python
from fluxion import ActionChannel, Store

store = Store.create({"message": "initialMessage", "count": 0})
set_message = ActionChannel(name="set_message")

message = store.create_slice("message")
message.add_reducer(set_message, lambda state, text: text)

message.select().subscribe(print)   # prints "initialMessage"
set_message.next("Message1")        # prints "Message1"
store.state                         # {"message": "Message1", "count": 0}
```

Consistency
-----------

All stores derived from one root share the root's state stream. A dispatch
runs the reducer, updates the root state, then emits once on the root
stream; slice streams are views over that single emission, so no subscriber
can observe a slice value that disagrees with the root.

Reentrancy: a reducer that causes another dispatch into the same store tree
while it runs is rejected with `ReentrantDispatchError`. An `ActionChannel`
isolates that error in the nested subscriber, so the outer reducer still
applies. A reactivex `Subject` re-raises it to the publisher, which is the
outer reducer, so the outer dispatch fails too. A subscriber that
dispatches while the state is being delivered is fine: the reducer runs at
once and the resulting emission is delivered after the current one.
"""

import itertools
import logging
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar

from .errors import ReentrantDispatchError, StoreDestroyedError
from .stream import BroadcastStream, ErrorHandler, Stream
from .subscription import Subscription, as_releasable
from .util.keys import assoc_key, dissoc_key, get_key
from .util.sentinels import ABSENT, DELETE

logger = logging.getLogger(__name__)

S = TypeVar("S")
R = TypeVar("R")

Reducer = Callable[[Any, Any], Any]


def _identity(value):
    return value


class Store(Generic[S]):
    """
    Root store: owns the state value and its broadcast stream.

    Created with `Store.create(initial_state)`. Lives until dropped; it holds
    no resources besides its reducer bindings, which are released one by one
    through their handles or all at once with `destroy()`.
    """

    def __init__(
        self,
        initial_state: S,
        *,
        name: Optional[str] = None,
        on_error: Optional[ErrorHandler] = None,
    ):
        self._init_common(name or "root")
        self._state = initial_state
        self._stream: BroadcastStream[S] = BroadcastStream(
            initial_state, on_error=on_error
        )
        self._reducing = False

    def _init_common(self, name: str) -> None:
        self.name = name
        self._bindings: Dict[int, Subscription] = {}
        self._binding_ids = itertools.count(1)
        self._destroyed = False

    @classmethod
    def create(
        cls,
        initial_state: S,
        *,
        name: Optional[str] = None,
        on_error: Optional[ErrorHandler] = None,
    ) -> "Store[S]":
        """Create a root store holding `initial_state`."""
        return cls(initial_state, name=name, on_error=on_error)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def state(self) -> S:
        """Current state. Reflects every applied reducer, even mid-delivery."""
        return self._state

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @property
    def reducer_count(self) -> int:
        return len(self._bindings)

    def _state_stream(self) -> Stream[S]:
        return self._stream

    def select(self, selector: Optional[Callable[[S], R]] = None) -> Stream[R]:
        """
        Stream of `selector(state)` for the current state and every later one.

        Subscribers receive the current value immediately. Selecting never
        changes the state.
        """
        return self._state_stream().map(selector or _identity)

    def watch(self, selector: Optional[Callable[[S], R]] = None) -> Stream[R]:
        """Like `select`, but skips values identical to the previous one."""
        return self.select(selector).distinct()

    # ------------------------------------------------------------------
    # Reducers
    # ------------------------------------------------------------------

    def add_reducer(
        self,
        channel: Any,
        reducer: Reducer,
        action_name: Optional[str] = None,
    ) -> Subscription:
        """
        Apply `reducer` to this store's state on every payload of `channel`.

        Args:
            channel: Any multicast source with `subscribe(callback)`, such as
                an `ActionChannel` or a reactivex `Subject`.
            reducer: Pure function `(state, payload) -> new_state`.
            action_name: Label used in log messages.

        Returns:
            Subscription that stops this binding when released. Other
            bindings and the current state are not affected.

        Raises:
            StoreDestroyedError: If the store has been destroyed.
        """
        if self._destroyed:
            raise StoreDestroyedError(f"Cannot add a reducer to destroyed store {self.name!r}")

        binding_id = next(self._binding_ids)
        label = action_name or getattr(channel, "name", None) or f"action#{binding_id}"
        binding = Subscription()

        def on_action(payload):
            # Foreign channels may still deliver to a released binding
            if binding.closed:
                return
            self._dispatch(reducer, payload, label)

        binding.add(as_releasable(channel.subscribe(on_action)))
        binding.add(lambda: self._forget_binding(binding_id, label))
        self._bindings[binding_id] = binding
        logger.debug(f"Store {self.name!r}: added reducer for {label}")
        return binding

    def _forget_binding(self, binding_id: int, label: str) -> None:
        if self._bindings.pop(binding_id, None) is not None:
            logger.debug(f"Store {self.name!r}: released reducer for {label}")

    def _dispatch(self, reducer: Reducer, payload: Any, label: str) -> None:
        if self._reducing:
            raise ReentrantDispatchError(
                f"Store {self.name!r}: {label} was dispatched while a reducer was running"
            )
        self._reducing = True
        try:
            new_state = reducer(self._state, payload)
        finally:
            self._reducing = False
        self._state = new_state
        logger.debug(f"Store {self.name!r}: applied {label}")
        self._stream.emit(new_state)

    # ------------------------------------------------------------------
    # Derived stores
    # ------------------------------------------------------------------

    def create_slice(
        self,
        key: Hashable,
        default: Any = ABSENT,
        cleanup_state: Any = ABSENT,
    ) -> "Slice":
        """
        Store scoped to `state[key]`.

        Args:
            key: Key, index or attribute name to project.
            default: Value seen while the parent has nothing at `key`. The
                parent is not written until a reducer on the slice runs.
            cleanup_state: Written back to the parent's `key` when the slice
                is destroyed; `DELETE` removes the key instead.
        """
        return Slice(self, key, default=default, cleanup_state=cleanup_state)

    def create_projection(
        self,
        forward: Callable[[S], Any],
        backward: Callable[[Any, S], S],
        name: Optional[str] = None,
    ) -> "Projection":
        """
        Store over an arbitrary view of this store's state.

        Args:
            forward: Maps the parent state to the projected state.
            backward: `(projected_state, parent_state) -> new_parent_state`,
                used to write reducer results back.
        """
        return Projection(self, forward, backward, name=name)

    def destroy(self) -> None:
        """
        Release every reducer bound to this store. Idempotent.

        Stores derived from this one keep their own bindings.
        """
        if self._destroyed:
            return
        self._destroyed = True
        for binding in list(self._bindings.values()):
            binding.release()
        logger.debug(f"Store {self.name!r}: destroyed")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, state={self.state!r})"


class Projection(Store[S]):
    """
    Store derived from a parent through a forward/backward pair.

    Holds no state: `state` is always `forward(parent.state)`, and reducer
    results are written to the parent through `backward`.
    """

    def __init__(
        self,
        parent: Store[Any],
        forward: Callable[[Any], S],
        backward: Callable[[S, Any], Any],
        *,
        name: Optional[str] = None,
    ):
        self._init_common(name or f"{parent.name}.projection")
        self._parent = parent
        self._forward = forward
        self._backward = backward

    @property
    def parent(self) -> Store[Any]:
        return self._parent

    @property
    def state(self) -> S:
        return self._forward(self._parent.state)

    def _state_stream(self) -> Stream[S]:
        return self._parent._state_stream().map(self._forward).distinct()

    def _dispatch(self, reducer: Reducer, payload: Any, label: str) -> None:
        forward, backward = self._forward, self._backward

        def lifted(parent_state, action_payload):
            return backward(reducer(forward(parent_state), action_payload), parent_state)

        self._parent._dispatch(lifted, payload, label)


class Slice(Projection[S]):
    """Projection of a single key of the parent state."""

    def __init__(
        self,
        parent: Store[Any],
        key: Hashable,
        *,
        default: Any = ABSENT,
        cleanup_state: Any = ABSENT,
    ):
        self.key = key
        self.default = None if default is ABSENT else default
        self._cleanup_state = cleanup_state
        fallback = self.default

        def forward(parent_state):
            return get_key(parent_state, key, fallback)

        def backward(sub_state, parent_state):
            return assoc_key(parent_state, key, sub_state)

        super().__init__(parent, forward, backward, name=f"{parent.name}.{key}")
        logger.debug(f"Store {parent.name!r}: created slice {self.name!r}")

    def destroy(self) -> None:
        """Release this slice's reducers and apply its cleanup state, if any."""
        if self._destroyed:
            return
        super().destroy()
        if self._cleanup_state is ABSENT:
            return

        key, cleanup_state = self.key, self._cleanup_state

        def cleanup(parent_state, _payload):
            if cleanup_state is DELETE:
                return dissoc_key(parent_state, key)
            return assoc_key(parent_state, key, cleanup_state)

        self._parent._dispatch(cleanup, None, f"cleanup of {self.name}")
