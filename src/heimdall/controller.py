"""Controller base class — the handler side of the routing table.

A controller declares its actions statically and registers itself with the
router when constructed::

    class CartController(ControllerBase):
        actions = ("add", "cleared", ActionDef("checkout", contract=Checkout))

        async def add(self, data: ActionData) -> None:
            ...

    cart = CartController(router)
    cart.listen_to_action("cleared", refresh_badge)

Inbound ``Cart.add`` calls ``add()``. Actions without a same-named method
(``cleared`` above) fan out to every listener registered through
``listen_to_action()``. The action → method table is built once at
construction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

from heimdall._internal.invoke import invoke
from heimdall._internal.types import ActionCallback
from heimdall.registry import SYSTEM_CONTROLLER, ActionDef, as_action

if TYPE_CHECKING:
    from heimdall.router import ActionData, Router

logger = logging.getLogger("heimdall.controller")


class ControllerBase:
    """Uniform ``_call_action`` entry point plus per-action listener fan-out.

    Class attributes:
        actions: Declared actions, names or ``ActionDef`` instances.
        controller_name: Registry key; defaults to the class name, so a
            ``UserController`` answers receivers ``User.<action>``.
    """

    actions: ClassVar[tuple[str | ActionDef, ...]] = ()
    controller_name: ClassVar[str | None] = None

    def __init__(self, router: Router) -> None:
        self._router = router
        self._callbacks: dict[str, list[ActionCallback]] = {}
        self._handlers: dict[str, Callable[..., Any]] = self._build_dispatch_table()
        router.register_controller(self, self.name, self.actions)
        logger.debug("Registered %s with actions %s", self.name, sorted(self.action_names()))

    @property
    def name(self) -> str:
        return self.controller_name or type(self).__name__

    @property
    def router(self) -> Router:
        return self._router

    @classmethod
    def action_names(cls) -> frozenset[str]:
        """Names of the statically declared actions."""
        return frozenset(as_action(action).name for action in cls.actions)

    def _build_dispatch_table(self) -> dict[str, Callable[..., Any]]:
        # Only methods defined below ControllerBase; its own API is never an action
        table: dict[str, Callable[..., Any]] = {}
        for name in self.action_names():
            for klass in type(self).__mro__:
                if klass is ControllerBase:
                    break
                if name in vars(klass):
                    if callable(vars(klass)[name]):
                        table[name] = getattr(self, name)
                    break
        return table

    def listen_to_action(self, action: str, callback: ActionCallback) -> bool:
        """Observe *action*. Only declared actions can be observed."""
        if action not in self.action_names():
            logger.error("No action %s for controller %s.", action, self.name)
            return False
        self._callbacks.setdefault(action, []).append(callback)
        return True

    async def call_listeners(self, action: str, data: ActionData) -> None:
        """Call every listener of *action* in registration order."""
        for callback in self._callbacks.get(action, ()):
            await invoke(callback, data)

    async def _call_action(self, action: str, data: ActionData) -> None:
        handler = self._handlers.get(action)
        if handler is not None:
            await invoke(handler, data)
        else:
            await self.call_listeners(action, data)


class HeimdallController(ControllerBase):
    """System actions under the reserved ``Heimdall`` namespace."""

    actions = ("csrf", "CSRF", "error")
    controller_name = SYSTEM_CONTROLLER

    async def csrf(self, data: ActionData) -> None:
        """Store the token delivered by the CSRF handshake."""
        await self._router.accept_csrf_token(data.received_package.csrf_token)

    async def CSRF(self, data: ActionData) -> None:  # noqa: N802 (receiver "Heimdall.CSRF")
        await self.csrf(data)

    def error(self, data: ActionData) -> None:
        """Log a failure reported by the backend."""
        logger.error("Backend failed to process package: %r", data.received_package.payload)
