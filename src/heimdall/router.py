"""Heimdall router — dispatch, transport selection, and inbound routing.

The ``Router`` is an explicit context object. The application entry point
creates exactly one, registers its controllers, and starts it::

    router = Router(RouterConfig(host="https://shop.example.com", handle_csrf=True))
    CartController(router)

    async with router:
        await router.dispatch({"sku": "A-42"}, receiver="Cart.add")

Outbound: ``dispatch()`` builds a ``Package`` and hands its JSON to the
transport picked by the package's protocol. Inbound: whatever the backend
(or a custom connection) returns goes through ``receive_package()``, which
sorts batches by priority, resolves each receiver, runs the action's
contract, and calls the handler.

Preconditions:
    Register controllers and actions before traffic flows. Registration and
    routing share state without any locking; everything runs on one event
    loop.

Nothing here raises on a bad message or a failed request. Routing misses
and contract failures are logged; transport failures go to the
connection-failure callback.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any

import anyio
import httpx

from heimdall._internal.invoke import invoke
from heimdall._internal.types import FailureCallback
from heimdall.config import RouterConfig, resolve_address
from heimdall.controller import HeimdallController
from heimdall.errors import (
    ConfigurationError,
    ConnectionFailed,
    TransportError,
    UnknownProtocolError,
)
from heimdall.package import DispatchOptions, FileAttachment, Package
from heimdall.registry import ActionDef, Registry, split_receiver
from heimdall.transport.base import ActiveConnection, ConnectionCallbacks, CustomConnection
from heimdall.transport.http import HTTPTransport, build_url
from heimdall.transport.selector import TransportKind, select_transport

logger = logging.getLogger("heimdall.router")

CSRF_HEADER = "X-CSRF-TOKEN"
CSRF_RECEIVER = "Heimdall.CSRF"

# Protocol tags handed to receive_package()
HTTP_PROTOCOL = "HTTP"
CUSTOM_PROTOCOL = "CUSTOM"


@dataclass(frozen=True, slots=True)
class ActionData:
    """What an action handler receives.

    ``contract`` is a fresh instance of the action's contract type with the
    payload assigned, or ``None`` when the action declares no contract.
    """

    received_package: Package
    contract: Any = None


# -- Batch ordering --


def _priority_of(message: Any) -> int | float | None:
    if not isinstance(message, Mapping):
        return None
    priority = message.get("priority")
    # Non-numeric priorities count as absent
    if isinstance(priority, bool) or not isinstance(priority, (int, float)):
        return None
    return priority


def compare_priority(left: Any, right: Any) -> int:
    """Order two inbound messages: higher priority first, none last.

    Not a consistent total order. Two messages without priority both
    report "left goes after", and equal priorities report "left goes
    first", so several such messages keep an implementation-dependent
    order among themselves.
    """
    left_priority = _priority_of(left)
    right_priority = _priority_of(right)
    if left_priority is None:
        return 1
    if right_priority is None:
        return -1
    return 1 if left_priority < right_priority else -1


def sort_by_priority(messages: Iterable[Any]) -> list[Any]:
    return sorted(messages, key=cmp_to_key(compare_priority))


def _log_connection_failure(error: TransportError) -> None:
    logger.error("Network Error: %s", error)


class Router:
    """Routes packages between the application and its backend.

    Attributes:
        config: The configuration snapshot the router was built with.
        host, port, path, protocol: Defaults for outbound packages.
        csrf_token: Token received by the CSRF handshake, if any.
        registry: Controllers and their declared actions.
        connection_failure_callback: Receives every ``TransportError``.
    """

    __slots__ = (
        "_after_csrf_pending",
        "_connections",
        "_http",
        "config",
        "connection_failure_callback",
        "csrf_token",
        "host",
        "path",
        "port",
        "protocol",
        "registry",
    )

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config: RouterConfig = config or RouterConfig()
        if self.config.use_custom_connection and self.config.connection is None:
            msg = "use_custom_connection=True requires a CustomConnection in RouterConfig.connection."
            raise ConfigurationError(msg)

        self.host, self.port = resolve_address(self.config)
        self.path: str = self.config.path
        self.protocol: str = self.config.protocol
        self.csrf_token: str | None = None
        self.registry = Registry(contract_required=self.config.contract_required)
        self.connection_failure_callback: FailureCallback = _log_connection_failure

        self._http = HTTPTransport(client, timeout=self.config.request_timeout)
        self._connections: list[ActiveConnection] = []
        self._after_csrf_pending = self.config.after_csrf is not None

        HeimdallController(self)

    # -- Lifecycle --

    async def start(self) -> None:
        """Run the startup handshake.

        With ``handle_csrf`` on, fetch the first CSRF token from the
        reserved ``Heimdall.CSRF`` receiver.
        """
        if self.config.handle_csrf:
            await self._request_csrf_token()

    async def close(self) -> None:
        """Disconnect custom connections and close the HTTP client."""
        try:
            if self._connections:
                await self.disconnect_all()
        finally:
            await self._http.aclose()

    async def __aenter__(self) -> Router:
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # -- Registration --

    def register_controller(
        self,
        instance: Any,
        controller_name: str,
        actions: Iterable[str | ActionDef] = (),
    ) -> None:
        self.registry.register_controller(instance, controller_name, actions)

    def register_action(self, controller_name: str, action: str | ActionDef) -> ActionDef:
        """Register an action without a controller instance.

        Only actions with an inline ``callback`` are routable this way.
        """
        return self.registry.register_action(controller_name, action)

    def set_connection_failure_callback(self, callback: FailureCallback) -> None:
        """Replace the default handler (which only logs) for transport failures."""
        self.connection_failure_callback = callback

    # -- Outbound --

    async def dispatch(
        self,
        payload: Any,
        *,
        receiver: str | None = None,
        path: str | None = None,
        host: str | None = None,
        port: int | None = None,
        protocol: str | None = None,
        files: Iterable[FileAttachment] = (),
        csrf_token: str | None = None,
        decorate: bool = False,
    ) -> bool:
        """Build a package around *payload* and send it.

        *payload* may be a plain mapping or any ``Serializable``. Returns
        ``True`` when the request went out and its reply was routed,
        ``False`` when it failed (the failure callback has been called).
        """
        options = DispatchOptions(
            receiver=receiver,
            path=path,
            host=host,
            port=port,
            protocol=protocol,
            files=tuple(files),
            csrf_token=csrf_token,
            decorate=decorate,
        )
        return await Package.build_send(self, payload, options).send_out(self)

    async def send_out(
        self,
        body: str,
        *,
        protocol: str | None = None,
        host: str | None = None,
        path: str | None = None,
        port: int | None = None,
        files: Iterable[FileAttachment] = (),
    ) -> bool:
        """Send serialized package JSON over the transport for *protocol*."""
        protocol = protocol or self.protocol
        kind = select_transport(protocol)
        if kind is None:
            logger.error("Unknown protocol: %s", protocol)
            await self._report_failure(UnknownProtocolError(str(protocol)))
            return False

        if kind is TransportKind.CUSTOM:
            return await self._send_custom(body)

        files = tuple(files)
        url = build_url(host or self.host, path or self.path, port or self.port)
        headers = self._headers()
        try:
            if kind is TransportKind.GET:
                if files:
                    logger.warning(
                        "Files cannot be sent with GET, %d attachment(s) not sent to %s.",
                        len(files),
                        url,
                    )
                data = await self._http.get(url, body, headers=headers)
            else:
                data = await self._http.post(url, body, headers=headers, files=files)
        except TransportError as exc:
            await self._report_failure(exc)
            return False

        await self.receive_package(data, HTTP_PROTOCOL)
        return True

    def _headers(self) -> dict[str, str]:
        if self.config.handle_csrf and self.csrf_token is not None:
            return {CSRF_HEADER: self.csrf_token}
        return {}

    async def _report_failure(self, error: TransportError) -> None:
        await invoke(self.connection_failure_callback, error)

    # -- CSRF --

    async def _request_csrf_token(self) -> bool:
        options = DispatchOptions(receiver=CSRF_RECEIVER, protocol="GET")
        return await Package.build_send(self, {}, options).send_out(self)

    async def accept_csrf_token(self, token: str | None) -> None:
        """Store *token*; the first time, fire ``after_csrf``."""
        self.csrf_token = token
        if self._after_csrf_pending:
            self._after_csrf_pending = False
            await invoke(self.config.after_csrf)

    # -- Inbound --

    async def receive_package(self, raw: Any, protocol: str | None = None) -> None:
        """Route one decoded message, or a batch of them in priority order.

        Each message is isolated: a miss, a failed contract, or a raising
        handler is logged and the rest of the batch still runs.
        """
        if isinstance(raw, (list, tuple)):
            messages = sort_by_priority(raw)
        else:
            messages = [raw]

        for message in messages:
            await self._route(message, protocol)

    async def _route(self, message: Any, protocol: str | None) -> None:
        package = Package.build_receive(message, protocol)
        if not isinstance(package.receiver, str):
            if isinstance(message, Mapping):
                logger.error("Package without receiver dropped: %r", message)
            return

        match = self.registry.resolve(package.receiver)
        if match is None:
            controller, action_name = split_receiver(package.receiver)
            logger.error(
                "Path for %s, which was interpreted as %s and %s not found.",
                package.receiver,
                controller,
                action_name,
            )
            return

        action = match.action
        try:
            contract = None
            if action.contract is not None:
                contract = action.contract()
                contract.assign(package.payload)
            record = ActionData(received_package=package, contract=contract)

            if action.validate and contract is not None and not contract.is_valid(action.context):
                if not action.silent:
                    logger.warning(
                        "Contract for %s failed, handler not called: %s",
                        package.receiver,
                        contract.errors,
                    )
                if action.on_invalid is not None:
                    await invoke(action.on_invalid, record)
                return

            if action.callback is not None:
                await invoke(action.callback, record)
            else:
                await match.instance._call_action(action.name, record)
        except Exception:
            logger.exception("Handler for %s failed.", package.receiver)

    # -- Custom connections --

    @property
    def connections(self) -> tuple[ActiveConnection, ...]:
        """Active custom connections, oldest first."""
        return tuple(self._connections)

    def _custom_connection(self) -> CustomConnection:
        connection = self.config.connection
        if not self.config.use_custom_connection or connection is None:
            msg = "Custom connections are disabled; set use_custom_connection=True."
            raise ConfigurationError(msg)
        return connection

    async def connect(self, params: Mapping[str, Any]) -> Any:
        """Open a custom connection and remember it with its *params*.

        Returns the connection handle, or ``None`` if connecting failed
        (the failure callback has been called).
        """
        connection = self._custom_connection()
        callbacks = ConnectionCallbacks(
            on_connected=self._on_connected,
            on_disconnected=self._on_disconnected,
            on_receive=self._on_receive,
        )
        params = dict(params)
        try:
            handle = await invoke(connection.connect, params, callbacks)
        except Exception as exc:
            await self._report_failure(ConnectionFailed(f"Connect with {params!r} failed: {exc}", exc))
            return None

        self._connections.append(ActiveConnection(handle=handle, params=params))
        return handle

    async def disconnect(self, params: Mapping[str, Any]) -> bool:
        """Close every connection opened with params equal to *params*."""
        connection = self._custom_connection()
        params = dict(params)
        matching = [active for active in self._connections if active.params == params]
        self._connections = [active for active in self._connections if active.params != params]
        for active in matching:
            try:
                await invoke(connection.disconnect, active.handle)
            except Exception as exc:
                msg = f"Disconnect from {active.params!r} failed: {exc}"
                await self._report_failure(ConnectionFailed(msg, exc))
        return bool(matching)

    async def disconnect_all(self) -> None:
        connection = self._custom_connection()
        handles = [active.handle for active in self._connections]
        self._connections.clear()
        try:
            await invoke(connection.disconnect_all, handles)
        except Exception as exc:
            await self._report_failure(ConnectionFailed(f"Disconnecting all connections failed: {exc}", exc))

    async def _send_custom(self, body: str) -> bool:
        try:
            connection = self._custom_connection()
        except ConfigurationError as exc:
            logger.error("%s", exc)
            await self._report_failure(ConnectionFailed(str(exc), exc))
            return False

        if not self._connections:
            await self._report_failure(ConnectionFailed("No active custom connection."))
            return False

        failures: list[ConnectionFailed] = []

        async def send_one(active: ActiveConnection) -> None:
            try:
                await invoke(connection.send, active.handle, body)
            except Exception as exc:
                failures.append(ConnectionFailed(f"Send over {active.params!r} failed: {exc}", exc))

        async with anyio.create_task_group() as tg:
            for active in list(self._connections):
                tg.start_soon(send_one, active)

        for failure in failures:
            await self._report_failure(failure)
        return not failures

    async def _on_connected(self, handle: Any) -> None:
        logger.info("Custom connection %r established.", handle)

    async def _on_disconnected(self, handle: Any) -> None:
        logger.info("Custom connection %r closed.", handle)
        self._connections = [active for active in self._connections if active.handle is not handle]

    async def _on_receive(self, data: Any) -> None:
        if isinstance(data, (str, bytes, bytearray)):
            try:
                data = json.loads(data)
            except ValueError as exc:
                await self._report_failure(ConnectionFailed(f"Invalid JSON from custom connection: {exc}", exc))
                return
        await self.receive_package(data, CUSTOM_PROTOCOL)
