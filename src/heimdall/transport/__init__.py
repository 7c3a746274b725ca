"""Transports — how packages leave and re-enter the client.

``select_transport()`` maps a protocol name to a ``TransportKind``;
``HTTPTransport`` handles POST and GET over httpx; custom connections
(sockets and the like) implement ``CustomConnection``.
"""

from heimdall.transport.base import ActiveConnection, ConnectionCallbacks, CustomConnection
from heimdall.transport.http import HTTPTransport, build_url
from heimdall.transport.selector import TransportKind, select_transport

__all__ = [
    "ActiveConnection",
    "ConnectionCallbacks",
    "CustomConnection",
    "HTTPTransport",
    "TransportKind",
    "build_url",
    "select_transport",
]
