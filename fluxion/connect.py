"""
Fluxion Connect - Binding Stores to Components
==============================================

`connect(Component, resolver)` builds a component class whose instances
derive input properties and callbacks from a store.

A "component" is anything callable with keyword properties that returns an
object with a `render()` method, typically a class. Fluxion never looks
further inside it.

The resolver receives the store once per mount and returns any of:

- ``props``: a stream of property mappings (for example `store.watch(...)`)
- ``action_map``: property name -> channel, callable or None
- ``cleanup``: a releasable handle released on unmount

as a `ConnectResult`, a plain dict with those keys, or None.

```python
Greeting = connect(
    GreetingView,
    lambda store: {
        "props": store.create_slice("name").watch(lambda name: {"name": name}),
        "action_map": {"on_rename": rename},
    },
)

with StoreProvider(store):
    greeting = Greeting().mount()
greeting.render()
greeting.unmount()
```

Precedence
----------

Properties passed by the owner always win, key by key, even when the value
passed is None: passing a keyword is what counts, not its value. Derived
properties only fill keys the owner did not pass at all. Between the two
derived sources, action map callbacks win over streamed props.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional

from .errors import ActionMapError
from .provider import current_store
from .subscription import Subscription
from .util.sentinels import ABSENT

logger = logging.getLogger(__name__)

Resolver = Callable[[Any], Any]


# ============================================================================
# RESOLUTION RESULT
# ============================================================================


@dataclass(frozen=True)
class ConnectResult:
    """What a resolver derives from the store. Every field is optional."""

    props: Optional[Any] = None
    action_map: Optional[Mapping[str, Any]] = None
    cleanup: Optional[Any] = None

    @classmethod
    def coerce(cls, result: Any) -> "ConnectResult":
        """
        Normalize a resolver's return value.

        Raises:
            TypeError: If `result` is not None, a mapping or a ConnectResult,
                or if a mapping has unknown keys.
        """
        if result is None:
            return cls()
        if isinstance(result, cls):
            return result
        if isinstance(result, Mapping):
            unknown = set(result) - {"props", "action_map", "cleanup"}
            if unknown:
                raise TypeError(
                    f"Unknown keys in connect result: {', '.join(sorted(map(str, unknown)))}"
                )
            return cls(**result)
        raise TypeError(
            f"Resolver must return a mapping, a ConnectResult or None, got {type(result).__name__}"
        )


# ============================================================================
# ACTION TARGETS
# ============================================================================


class ActionTarget:
    """Resolved action map entry."""

    def as_prop(self) -> Optional[Callable[..., Any]]:
        raise NotImplementedError


@dataclass(frozen=True)
class Callback(ActionTarget):
    """Entry bound to a function: the rendered prop calls it directly."""

    fn: Callable[..., Any]

    def as_prop(self) -> Callable[..., Any]:
        fn = self.fn

        def invoke(*args, **kwargs):
            return fn(*args, **kwargs)

        return invoke


@dataclass(frozen=True)
class ChannelTarget(ActionTarget):
    """Entry bound to a channel: the rendered prop publishes its first argument."""

    channel: Any

    def as_prop(self) -> Callable[..., None]:
        publish = _publisher(self.channel)

        def invoke(*args, **kwargs):
            publish(args[0] if args else None)

        return invoke


class Ignored(ActionTarget):
    """Entry set to None: leaves the owner's property untouched."""

    def as_prop(self) -> None:
        return None

    def __repr__(self) -> str:
        return "Ignored()"


IGNORED = Ignored()


def _publisher(target: Any) -> Optional[Callable[[Any], Any]]:
    for method_name in ("next", "on_next"):
        method = getattr(target, method_name, None)
        if callable(method):
            return method
    return None


def resolve_action_target(name: str, target: Any) -> ActionTarget:
    """
    Classify one action map entry.

    Raises:
        ActionMapError: If `target` is not a channel, a callable or None.
    """
    if target is None:
        return IGNORED
    if _publisher(target) is not None:
        return ChannelTarget(target)
    if callable(target):
        return Callback(target)
    raise ActionMapError(name, target)


def bind_action_map(action_map: Mapping[str, Any]) -> Dict[str, Callable[..., Any]]:
    """Rendered callbacks for every entry that is not ignored."""
    callbacks = {}
    for name, target in action_map.items():
        prop = resolve_action_target(name, target).as_prop()
        if prop is not None:
            callbacks[name] = prop
    return callbacks


# ============================================================================
# CONNECTED COMPONENT
# ============================================================================


class ConnectedComponent:
    """
    Wrapper component produced by `connect`.

    Lifecycle: created unmounted with the owner's properties; `mount()`
    resolves the store once and subscribes; `unmount()` releases everything
    acquired by the mount. Without a store the wrapped component is rendered
    from the owner's properties alone.
    """

    component: ClassVar[Callable[..., Any]]
    resolver: ClassVar[Resolver]

    def __init__(self, **owner_props: Any):
        self._owner_props: Dict[str, Any] = dict(owner_props)
        self._derived_props: Dict[str, Any] = {}
        self._action_props: Dict[str, Callable[..., Any]] = {}
        self._subscription: Optional[Subscription] = None
        self.store: Optional[Any] = None
        self.element: Optional[Any] = None
        self.render_count = 0

    @property
    def is_mounted(self) -> bool:
        return self._subscription is not None

    @property
    def owner_props(self) -> Dict[str, Any]:
        return dict(self._owner_props)

    @property
    def props(self) -> Dict[str, Any]:
        """Properties the wrapped component is rendered with."""
        rendered = dict(self._derived_props)
        rendered.update(self._action_props)
        rendered.update(self._owner_props)
        return rendered

    def mount(self, store: Any = ABSENT) -> "ConnectedComponent":
        """
        Resolve the store and start receiving derived properties.

        Args:
            store: Store to bind to. Defaults to the ambient store of the
                enclosing `StoreProvider`; None means no store.

        Raises:
            ActionMapError: If the resolver's action map has an invalid entry.
            Exception: Whatever the resolver or the first render raises.

        On any error, everything acquired during this mount is released
        first and the component is left unmounted.
        """
        if self.is_mounted:
            return self
        if store is ABSENT:
            store = current_store()

        subscription = Subscription()
        self._subscription = subscription
        self.store = store

        try:
            if store is not None:
                result = ConnectResult.coerce(type(self).resolver(store))
                subscription.add(result.cleanup)
                if result.action_map:
                    self._action_props = bind_action_map(result.action_map)
                if result.props is not None:
                    subscription.add(result.props.subscribe(self._on_props))
            self._render()
        except Exception:
            self._reset()
            subscription.release()
            raise

        if store is None:
            logger.debug(f"{type(self).__name__}: mounted without a store")
        else:
            logger.debug(f"{type(self).__name__}: mounted on {store!r}")
        return self

    def set_props(self, **owner_props: Any) -> None:
        """Update owner properties. The store side is not resolved again."""
        self._owner_props.update(owner_props)
        if self.is_mounted:
            self._render()

    def render(self) -> Any:
        if self.element is None:
            self._render()
        return self.element.render()

    def unmount(self) -> None:
        """Release the props subscription and cleanup handle. Idempotent."""
        subscription = self._subscription
        if subscription is None:
            return
        self._reset()
        subscription.release()
        logger.debug(f"{type(self).__name__}: unmounted")

    def _reset(self) -> None:
        self._subscription = None
        self.store = None
        self._derived_props = {}
        self._action_props = {}

    def _on_props(self, derived: Optional[Mapping[str, Any]]) -> None:
        if not self.is_mounted:
            return
        self._derived_props = dict(derived or {})
        self._render()

    def _render(self) -> None:
        self.element = type(self).component(**self.props)
        self.render_count += 1

    def __enter__(self) -> "ConnectedComponent":
        return self.mount()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unmount()

    def __repr__(self) -> str:
        state = "mounted" if self.is_mounted else "unmounted"
        return f"<{type(self).__name__} {state} props={sorted(self.props)}>"


def connect(component: Callable[..., Any], resolver: Resolver) -> type:
    """
    Wrap `component` so its properties are derived from a store.

    Args:
        component: Callable taking keyword properties and returning an
            object with `render()`.
        resolver: `(store) -> ConnectResult | dict | None`, invoked once per
            mount.

    Returns:
        A `ConnectedComponent` subclass named after the wrapped component.
    """
    name = getattr(component, "__name__", type(component).__name__)
    return type(
        f"Connected{name}",
        (ConnectedComponent,),
        {
            "component": staticmethod(component),
            "resolver": staticmethod(resolver),
            "__wrapped__": component,
            "__module__": getattr(component, "__module__", __name__),
        },
    )
