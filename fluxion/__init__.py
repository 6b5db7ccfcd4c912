"""
Fluxion - Reactive State Stores with Component Bindings
=======================================================

An observable state container with dynamically registered reducers and
key-scoped slices, plus a binding layer that derives component properties and
callbacks from a store.
"""

__version__ = "0.1.0"

from .connect import (
    ActionTarget,
    Callback,
    ChannelTarget,
    ConnectedComponent,
    ConnectResult,
    Ignored,
    bind_action_map,
    connect,
    resolve_action_target,
)
from .errors import (
    ActionMapError,
    FluxionError,
    ReentrantDispatchError,
    StoreDestroyedError,
)
from .provider import StoreProvider, current_store
from .store import Projection, Slice, Store
from .stream import (
    ActionChannel,
    BroadcastStream,
    DistinctStream,
    MappedStream,
    Stream,
)
from .subscription import Subscription, as_releasable
from .util.sentinels import ABSENT, DELETE

__all__ = [
    # Streams
    "Stream",
    "BroadcastStream",
    "ActionChannel",
    "MappedStream",
    "DistinctStream",
    "Subscription",
    "as_releasable",
    # Stores
    "Store",
    "Projection",
    "Slice",
    # Binding layer
    "connect",
    "ConnectedComponent",
    "ConnectResult",
    "ActionTarget",
    "Callback",
    "ChannelTarget",
    "Ignored",
    "resolve_action_target",
    "bind_action_map",
    "StoreProvider",
    "current_store",
    # Errors
    "FluxionError",
    "ActionMapError",
    "ReentrantDispatchError",
    "StoreDestroyedError",
    # Sentinels
    "ABSENT",
    "DELETE",
]
