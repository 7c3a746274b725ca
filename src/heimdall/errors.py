"""Heimdall exception hierarchy.

Shared across Router, Package, transports, and controllers so every module
raises and reports the same types.
"""


class HeimdallError(Exception):
    """Base for all heimdall-specific errors."""


class ConfigurationError(HeimdallError):
    """Raised when router configuration or registration is invalid.

    Typically raised while the router is constructed or while controllers
    register their actions, before any traffic flows.
    """


class TransportError(HeimdallError):
    """A dispatch could not be delivered or its response could not be read.

    Never raised out of ``Router.dispatch()``. Instances are handed to the
    router's connection-failure callback instead.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class UnknownProtocolError(TransportError):
    """The package names a protocol no transport handles."""

    def __init__(self, protocol: str) -> None:
        self.protocol = protocol
        super().__init__(f"Unknown protocol: {protocol}")


class ConnectionFailed(TransportError):
    """A network request or custom connection call failed."""
