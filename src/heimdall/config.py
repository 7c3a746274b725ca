"""Router configuration.

RouterConfig is a frozen dataclass. Every recognized option is a field;
there are no free-form option dicts.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from heimdall.transport.base import CustomConnection

DEFAULT_HOST = "http://localhost"
DEFAULT_PORT = 80


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(host="https://api.example.com", port=443, handle_csrf=True)

    When neither ``host`` nor ``port`` is given they are inferred from
    ``location`` (the URL of the page the client runs on), see
    :func:`resolve_address`.
    """

    # Addressing
    path: str = "/api"
    host: str | None = None
    port: int | None = None
    location: str | None = None
    protocol: str = "HTTP"

    # CSRF bootstrap
    handle_csrf: bool = False
    after_csrf: Callable[[], Any] | None = None

    # Outbound receiver names, e.g. "User.showAll" -> "user.show_all"
    decorate_receiver: Callable[[str], str] | None = None

    # Reject actions declared without a payload contract
    contract_required: bool = False

    # Custom transport (socket etc.)
    use_custom_connection: bool = False
    connection: "CustomConnection | None" = None

    # Passed to the HTTP client; the router itself never times out
    request_timeout: float = 30.0


def _origin_without_port(location: str) -> str:
    parts = urlsplit(location)
    host = parts.netloc.rpartition("@")[2]
    # Drop a trailing ":port", but not the colons inside an IPv6 literal
    head, sep, tail = host.rpartition(":")
    if sep and "]" not in tail:
        host = head
    return f"{parts.scheme}://{host}"


def resolve_address(config: RouterConfig) -> tuple[str, int]:
    """Return the ``(host, port)`` the router sends to by default.

    Explicit values win. Without a host, the origin of ``config.location``
    (scheme and hostname) is used; the port is taken from the location only
    when neither host nor port was configured. Anything still missing falls
    back to ``http://localhost`` and port 80.
    """
    host = config.host
    port = config.port

    if config.location:
        if host is None and port is None:
            host = _origin_without_port(config.location)
            port = urlsplit(config.location).port
        elif host is None:
            host = _origin_without_port(config.location)

    return host or DEFAULT_HOST, port or DEFAULT_PORT
