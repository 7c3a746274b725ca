"""Heimdall — client-side package routing for frontend/backend messaging.

Send payloads to a backend without hard-coding network details, and route
whatever comes back to the controller action it is addressed to.

Basic usage::

    from heimdall import ControllerBase, Router, RouterConfig

    class UserController(ControllerBase):
        actions = ("show",)

        def show(self, data):
            print(data.received_package.payload)

    router = Router(RouterConfig(host="https://example.com"))
    UserController(router)

    async with router:
        await router.dispatch({"id": 7}, receiver="User.show")
"""

__version__ = "0.1.0-dev"
__all__ = [
    "ActionData",
    "ActionDef",
    "ConfigurationError",
    "Contract",
    "ControllerBase",
    "DispatchOptions",
    "FileAttachment",
    "HeimdallError",
    "Package",
    "Router",
    "RouterConfig",
    "RuleContract",
    "Serializable",
    "TransportError",
]

# name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    "ActionData": "heimdall.router",
    "ActionDef": "heimdall.registry",
    "ConfigurationError": "heimdall.errors",
    "Contract": "heimdall.contracts",
    "ControllerBase": "heimdall.controller",
    "DispatchOptions": "heimdall.package",
    "FileAttachment": "heimdall.package",
    "HeimdallError": "heimdall.errors",
    "Package": "heimdall.package",
    "Router": "heimdall.router",
    "RouterConfig": "heimdall.config",
    "RuleContract": "heimdall.contracts",
    "Serializable": "heimdall.contracts",
    "TransportError": "heimdall.errors",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import heimdall`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
