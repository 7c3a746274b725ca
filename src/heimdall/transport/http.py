"""HTTP transport over httpx.

POST carries the package JSON as the request body, or as a multipart form
when files are attached::

    file-count = "2"
    _json      = '{"payload": {...}, "receiver": "..."}'
    file_1     = <first file>
    file_2     = <second file>

GET percent-encodes the package JSON into the ``_json`` query parameter.
Both decode the response body as JSON and return it for routing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from heimdall.errors import ConnectionFailed

if TYPE_CHECKING:
    from heimdall.package import FileAttachment

logger = logging.getLogger("heimdall.transport")

JSON_CONTENT_TYPE = "application/json"
JSON_FIELD = "_json"
FILE_COUNT_FIELD = "file-count"

# Same unreserved set as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def build_url(host: str, path: str, port: int) -> str:
    """Join host, port, and path. Port 80 is left implicit."""
    if port == 80:
        return f"{host}{path}"
    return f"{host}:{port}{path}"


def multipart_fields(
    body: str,
    files: Sequence[FileAttachment],
) -> tuple[dict[str, str], dict[str, tuple[str, bytes, str]]]:
    """Return ``(data, files)`` for an httpx multipart request."""
    data = {FILE_COUNT_FIELD: str(len(files)), JSON_FIELD: body}
    parts = {
        f"file_{position}": (attachment.name, attachment.content, attachment.content_type)
        for position, attachment in enumerate(files, start=1)
    }
    return data, parts


class HTTPTransport:
    """Sends package JSON to the backend and returns the decoded reply.

    Owns its ``httpx.AsyncClient`` unless one is passed in (tests pass a
    client built on ``httpx.MockTransport``).
    """

    __slots__ = ("_client", "_owns_client")

    def __init__(self, client: httpx.AsyncClient | None = None, *, timeout: float = 30.0) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def post(
        self,
        url: str,
        body: str,
        *,
        headers: Mapping[str, str] | None = None,
        files: Sequence[FileAttachment] = (),
    ) -> Any:
        """POST *body*, as JSON or as multipart when *files* are given."""
        request_headers = dict(headers or {})
        if files:
            data, parts = multipart_fields(body, files)
            return await self._request(
                "POST", url, headers=request_headers, data=data, files=parts
            )
        request_headers["Content-Type"] = JSON_CONTENT_TYPE
        return await self._request("POST", url, headers=request_headers, content=body)

    async def get(
        self,
        url: str,
        body: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """GET with *body* percent-encoded into the ``_json`` query parameter."""
        request_headers = dict(headers or {})
        request_headers["Content-Type"] = JSON_CONTENT_TYPE
        encoded = quote(body, safe=_URI_COMPONENT_SAFE)
        return await self._request("GET", f"{url}?{JSON_FIELD}={encoded}", headers=request_headers)

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            msg = f"{method} {url} failed: {exc}"
            raise ConnectionFailed(msg, exc) from exc

        logger.debug("%s %s -> %d", method, url, response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            msg = f"{method} {url} returned invalid JSON (status {response.status_code})"
            raise ConnectionFailed(msg, exc) from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
