"""Custom connection contract.

The router does not open sockets itself. In custom-connection mode it calls
an object implementing ``CustomConnection`` and hands it a
``ConnectionCallbacks`` bundle of bound closures. Every method may be sync
or async.

Lifecycle::

    handle = connection.connect(params, callbacks)   # router.connect(params)
    connection.send(handle, body)                    # protocol "CUSTOM"
    await callbacks.on_receive(data)                 # inbound -> router pipeline
    connection.disconnect(handle)                    # router.disconnect(params)
    connection.disconnect_all(handles)               # router.disconnect_all()
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class ConnectionCallbacks:
    """Closures a custom connection calls back into the router with.

    ``on_receive`` accepts JSON text, bytes, or already-decoded data.
    """

    on_connected: Callable[[Any], Awaitable[None]]
    on_disconnected: Callable[[Any], Awaitable[None]]
    on_receive: Callable[[Any], Awaitable[None]]


@runtime_checkable
class CustomConnection(Protocol):
    """A pluggable non-HTTP transport, e.g. a persistent socket."""

    def connect(self, params: Mapping[str, Any], callbacks: ConnectionCallbacks) -> Any: ...

    def send(self, handle: Any, body: str) -> Any: ...

    def disconnect(self, handle: Any) -> Any: ...

    def disconnect_all(self, handles: Sequence[Any]) -> Any: ...


@dataclass(frozen=True, slots=True)
class ActiveConnection:
    """A connected handle and the params it was opened with."""

    handle: Any
    params: Mapping[str, Any]
