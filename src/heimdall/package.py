"""Package — the envelope around one payload plus its routing metadata.

Packages are directional. ``Package.build_send()`` creates an outbound
package addressed with the dispatch options (falling back to the router's
defaults); ``Package.build_receive()`` wraps one decoded inbound message.
Both return frozen instances.

Outbound wire format::

    {"payload": {...}, "receiver": "User.show", "csrfToken": "..."}

Inbound wire format::

    {"receiver": "User.show", "csrf": "...", "payload": {...}, "priority": 3}
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from heimdall._internal.types import JSONObject
from heimdall.contracts import normalize_payload

if TYPE_CHECKING:
    from heimdall.router import Router

logger = logging.getLogger("heimdall.package")


@dataclass(frozen=True, slots=True)
class FileAttachment:
    """A binary attachment sent along with an outbound package."""

    name: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class DispatchOptions:
    """Per-dispatch overrides. ``None`` means "use the router default"."""

    receiver: str | None = None
    path: str | None = None
    host: str | None = None
    port: int | None = None
    protocol: str | None = None
    files: tuple[FileAttachment, ...] = ()
    csrf_token: str | None = None
    decorate: bool = False


@dataclass(frozen=True, slots=True)
class Package:
    """One unit of payload plus routing metadata.

    ``is_receiving`` is ``None`` for a package not built through one of the
    constructors, ``False`` for outbound and ``True`` for inbound packages.
    """

    payload: Any = field(default_factory=dict)
    receiver: str | None = None
    files: tuple[FileAttachment, ...] = ()
    path: str | None = None
    host: str | None = None
    port: int | None = None
    protocol: str | None = None
    csrf_token: str | None = None
    is_receiving: bool | None = None
    priority: int | float = 0

    @classmethod
    def build_send(
        cls,
        router: Router,
        payload: Any,
        options: DispatchOptions | None = None,
    ) -> Package:
        """Build an outbound package for *router*."""
        options = options or DispatchOptions()

        receiver = options.receiver
        decorate = router.config.decorate_receiver
        if options.decorate and receiver is not None and decorate is not None:
            receiver = decorate(receiver)

        return cls(
            payload=normalize_payload(payload),
            receiver=receiver,
            files=tuple(options.files),
            path=options.path or router.path,
            host=options.host or router.host,
            port=options.port or router.port,
            protocol=options.protocol or router.protocol,
            csrf_token=options.csrf_token or router.csrf_token,
            is_receiving=False,
        )

    @classmethod
    def build_receive(
        cls,
        raw: Any,
        protocol: str | None = None,
        *,
        default_protocol: str = "HTTP",
    ) -> Package:
        """Wrap one decoded inbound message.

        *protocol* names the transport the message arrived on; without it
        the package is tagged with *default_protocol*.

        Non-mapping input is logged and yields an inert package with no
        receiver, which the router drops.
        """
        protocol = protocol or default_protocol
        if not isinstance(raw, Mapping):
            logger.error("Got invalid JSON: %r", raw)
            return cls(protocol=protocol, is_receiving=True)

        payload = raw.get("payload")
        return cls(
            payload=payload if payload is not None else {},
            receiver=raw.get("receiver"),
            protocol=protocol,
            csrf_token=raw.get("csrf"),
            is_receiving=True,
            priority=raw.get("priority", 0),
        )

    def to_wire(self, include_csrf: bool = False) -> JSONObject:
        """Return the outbound wire mapping.

        ``receiver`` is only present when set; ``csrfToken`` only when set
        and *include_csrf* is true, so tokens never leave the client unless
        CSRF handling is switched on.
        """
        out: JSONObject = {"payload": self.payload}
        if self.receiver is not None:
            out["receiver"] = self.receiver
        if self.csrf_token is not None and include_csrf:
            out["csrfToken"] = self.csrf_token
        return out

    def to_json(self, include_csrf: bool = False) -> str:
        return json.dumps(self.to_wire(include_csrf))

    async def send_out(self, router: Router) -> bool:
        """Serialize and hand the package to *router*'s transport.

        Returns ``False`` without touching any transport when this is a
        received package.
        """
        if self.is_receiving:
            logger.error("Trying to send a received package!")
            return False
        body = self.to_json(router.config.handle_csrf)
        return await router.send_out(
            body,
            protocol=self.protocol,
            host=self.host,
            path=self.path,
            port=self.port,
            files=self.files,
        )
