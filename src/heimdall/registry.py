"""Controller registry — where inbound receivers get resolved to actions.

A receiver such as ``"Shop.Cart.add"`` names a controller namespace and an
action. The last segment is the action, the remaining segments plus the
``"Controller"`` suffix form the controller key::

    split_receiver("Shop.Cart.add") == ("Shop.CartController", "add")

Each controller key holds an optional bound handler instance and an ordered
list of ``ActionDef`` declarations. Entries are created lazily on first
registration and live as long as the router.

Registration is expected to finish before traffic flows; the registry does
no locking.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from heimdall.errors import ConfigurationError

CONTROLLER_SUFFIX = "Controller"

# Reserved namespace of the built-in handshake/error actions
SYSTEM_CONTROLLER = "Heimdall" + CONTROLLER_SUFFIX


@dataclass(frozen=True, slots=True)
class ActionDef:
    """A declared action.

    Attributes:
        name: Action name, the last receiver segment.
        controller: Register under this controller key instead of the
            declaring controller's own key.
        contract: Contract type; a fresh instance is populated per message.
        callback: Inline handler. Takes precedence over the controller
            instance and makes the action routable without one.
        on_invalid: Called instead of the handler when the contract fails.
        validate: Run ``contract.is_valid()`` before the handler.
        silent: Do not log contract failures for this action.
        context: Passed to ``contract.is_valid(context)``.
    """

    name: str
    controller: str | None = None
    contract: type | None = None
    callback: Callable[..., Any] | None = None
    on_invalid: Callable[..., Any] | None = None
    validate: bool = True
    silent: bool = False
    context: Any = None


@dataclass(slots=True)
class ControllerEntry:
    """Registry bucket for one controller key. Mutable during setup only."""

    instance: Any = None
    actions: list[ActionDef] = field(default_factory=list)
    # Parallel to ``actions``: the declaring instance for actions placed
    # here by another controller's override, else None
    owners: list[Any] = field(default_factory=list)

    def find(self, name: str) -> ActionDef | None:
        """First declaration named *name*; later duplicates are shadowed."""
        found = self.lookup(name)
        return found[0] if found is not None else None

    def lookup(self, name: str) -> tuple[ActionDef, Any] | None:
        """First declaration named *name* and the instance that handles it."""
        for action, owner in zip(self.actions, self.owners, strict=True):
            if action.name == name:
                return action, owner if owner is not None else self.instance
        return None


@dataclass(frozen=True, slots=True)
class ActionMatch:
    """Result of a successful receiver resolution."""

    controller: str
    action: ActionDef
    instance: Any = None


def as_action(action: str | ActionDef) -> ActionDef:
    """Normalize the string shorthand to an ``ActionDef``."""
    if isinstance(action, ActionDef):
        return action
    return ActionDef(name=action)


def split_receiver(receiver: str) -> tuple[str, str]:
    """Split a receiver into ``(controller_key, action_name)``."""
    parts = receiver.split(".")
    return ".".join(parts[:-1]) + CONTROLLER_SUFFIX, parts[-1]


class Registry:
    """Mapping from controller key to its instance and declared actions.

    Usage::

        registry = Registry()
        registry.register_action("UserController", "show")
        registry.register_controller(user_controller, "UserController", ["show"])
        match = registry.resolve("User.show")
    """

    __slots__ = ("_controllers", "contract_required")

    def __init__(self, *, contract_required: bool = False) -> None:
        self._controllers: dict[str, ControllerEntry] = {}
        self.contract_required = contract_required

    def _entry(self, controller_name: str) -> ControllerEntry:
        entry = self._controllers.get(controller_name)
        if entry is None:
            entry = ControllerEntry()
            self._controllers[controller_name] = entry
        return entry

    def register_controller(
        self,
        instance: Any,
        controller_name: str,
        actions: Iterable[str | ActionDef] = (),
    ) -> None:
        """Bind *instance* to *controller_name* and register its actions.

        Actions with a ``controller`` override land in that controller's
        bucket, which lets one controller contribute actions to another
        namespace. Such actions are still handled by *instance*.
        """
        self._entry(controller_name).instance = instance
        for action in actions:
            action = as_action(action)
            target = action.controller or controller_name
            owner = instance if target != controller_name else None
            self.register_action(target, action, owner=owner)

    def register_action(
        self,
        controller_name: str,
        action: str | ActionDef,
        *,
        owner: Any = None,
    ) -> ActionDef:
        """Append *action* to *controller_name*'s action list.

        *owner* handles the action instead of the bucket's own instance.

        Raises ``ConfigurationError`` for an action without a contract when
        contracts are required. The reserved system controller is exempt.
        """
        action = as_action(action)
        required = self.contract_required and controller_name != SYSTEM_CONTROLLER
        if required and action.contract is None:
            msg = f"Action {action.name!r} of {controller_name} declares no contract."
            raise ConfigurationError(msg)
        entry = self._entry(controller_name)
        entry.actions.append(action)
        entry.owners.append(owner)
        return action

    def get(self, controller_name: str) -> ControllerEntry | None:
        return self._controllers.get(controller_name)

    def resolve(self, receiver: str) -> ActionMatch | None:
        """Resolve *receiver* to an actionable declaration.

        Returns ``None`` when the controller or action is unknown, or when
        the declaration is an inert stub (no bound instance and no inline
        callback).
        """
        controller_name, action_name = split_receiver(receiver)
        entry = self._controllers.get(controller_name)
        if entry is None:
            return None

        found = entry.lookup(action_name)
        if found is None:
            return None

        action, instance = found
        bound = instance is not None and action.name != ""
        if not bound and action.callback is None:
            return None
        return ActionMatch(controller=controller_name, action=action, instance=instance)

    def __contains__(self, controller_name: str) -> bool:
        return controller_name in self._controllers

    def __len__(self) -> int:
        return len(self._controllers)
