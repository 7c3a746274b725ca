"""Test utilities for heimdall applications.

``MockBackend`` stands in for the HTTP backend. It is an
``httpx.MockTransport`` handler that records every request and answers
with queued JSON replies::

    backend = MockBackend()
    backend.reply({"receiver": "Cart.added", "payload": {"count": 1}})

    async with Router(config, client=backend.client()) as router:
        await router.dispatch({"sku": "A-42"}, receiver="Cart.add")

    assert backend.requests[0].json_body["receiver"] == "Cart.add"

``LoopbackConnection`` is an in-memory ``CustomConnection`` for
custom-transport tests: everything sent is recorded, and ``push()`` delivers
inbound data through the router's ``on_receive`` callback.
"""

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx

from heimdall.transport.base import ConnectionCallbacks


@dataclass(frozen=True, slots=True)
class RecordedRequest:
    """One request seen by ``MockBackend``."""

    method: str
    url: str
    headers: Mapping[str, str]
    content: bytes

    @property
    def json_body(self) -> Any:
        """The package JSON, from the body (POST) or ``_json`` query (GET)."""
        if self.method == "GET":
            query = parse_qs(urlsplit(self.url).query)
            return json.loads(query["_json"][0])
        return json.loads(self.content)

    @property
    def is_multipart(self) -> bool:
        return self.headers.get("content-type", "").startswith("multipart/form-data")


class MockBackend:
    """Scripted HTTP backend for router tests.

    Replies are served in order; once the queue is empty every request is
    answered with ``default``. ``fail_with`` makes the next request raise
    the given httpx error instead.
    """

    def __init__(self, default: Any = None) -> None:
        self.requests: list[RecordedRequest] = []
        self.default: Any = default if default is not None else []
        self._replies: list[Any] = []
        self._errors: list[Exception] = []

    def reply(self, data: Any, *, status: int = 200) -> None:
        """Queue a JSON reply (a message mapping, a batch list, or raw text)."""
        self._replies.append((status, data))

    def fail_with(self, error: Exception) -> None:
        self._errors.append(error)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(
            RecordedRequest(
                method=request.method,
                url=str(request.url),
                headers={k.lower(): v for k, v in request.headers.items()},
                content=request.content,
            )
        )
        if self._errors:
            raise self._errors.pop(0)
        if self._replies:
            status, data = self._replies.pop(0)
        else:
            status, data = 200, self.default
        if isinstance(data, str):
            return httpx.Response(status, text=data)
        return httpx.Response(status, json=data)

    def client(self) -> httpx.AsyncClient:
        """An ``httpx.AsyncClient`` that talks to this backend."""
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@dataclass(slots=True)
class _LoopbackHandle:
    params: dict[str, Any]
    callbacks: ConnectionCallbacks
    sent: list[str] = field(default_factory=list)
    open: bool = True


class LoopbackConnection:
    """In-memory custom connection.

    Handles are created per ``connect()``; ``sent`` collects every body
    sent over any handle.
    """

    def __init__(self) -> None:
        self.handles: list[_LoopbackHandle] = []
        self.sent: list[str] = []
        self.failing: bool = False

    async def connect(self, params: Mapping[str, Any], callbacks: ConnectionCallbacks) -> _LoopbackHandle:
        handle = _LoopbackHandle(params=dict(params), callbacks=callbacks)
        self.handles.append(handle)
        await callbacks.on_connected(handle)
        return handle

    async def send(self, handle: _LoopbackHandle, body: str) -> None:
        if self.failing or not handle.open:
            msg = "loopback connection is closed"
            raise ConnectionError(msg)
        handle.sent.append(body)
        self.sent.append(body)

    async def disconnect(self, handle: _LoopbackHandle) -> None:
        handle.open = False

    async def disconnect_all(self, handles: Sequence[_LoopbackHandle]) -> None:
        for handle in handles:
            handle.open = False

    async def push(self, data: Any, handle: _LoopbackHandle | None = None) -> None:
        """Deliver *data* as if the remote end sent it."""
        handle = handle or self.handles[-1]
        await handle.callbacks.on_receive(data)

    async def drop(self, handle: _LoopbackHandle) -> None:
        """Simulate the remote end closing *handle*."""
        handle.open = False
        await handle.callbacks.on_disconnected(handle)
