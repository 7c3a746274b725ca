"""Transport selection by protocol name."""

from enum import Enum


class TransportKind(Enum):
    """Which transport carries a package."""

    POST = "post"
    GET = "get"
    CUSTOM = "custom"


# "HTTP" is the default protocol and means a body-bearing POST
_PROTOCOLS: dict[str, TransportKind] = {
    "HTTP": TransportKind.POST,
    "POST": TransportKind.POST,
    "GET": TransportKind.GET,
    "CUSTOM": TransportKind.CUSTOM,
}


def select_transport(protocol: str | None) -> TransportKind | None:
    """Return the transport for *protocol*, or ``None`` if unknown."""
    return _PROTOCOLS.get(protocol)
