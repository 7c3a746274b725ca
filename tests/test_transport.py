"""Tests for heimdall.transport — URL building, selection, HTTP requests."""

import httpx
import pytest

from heimdall.errors import ConnectionFailed
from heimdall.package import FileAttachment
from heimdall.testing import MockBackend
from heimdall.transport import TransportKind, select_transport
from heimdall.transport.http import HTTPTransport, build_url, multipart_fields


class TestBuildUrl:
    def test_port_80_is_implicit(self) -> None:
        assert build_url("http://example.com", "/api", 80) == "http://example.com/api"

    def test_other_port_is_explicit(self) -> None:
        assert build_url("http://example.com", "/api", 8080) == "http://example.com:8080/api"


class TestSelectTransport:
    @pytest.mark.parametrize(
        ("protocol", "kind"),
        [
            ("HTTP", TransportKind.POST),
            ("POST", TransportKind.POST),
            ("GET", TransportKind.GET),
            ("CUSTOM", TransportKind.CUSTOM),
        ],
    )
    def test_known(self, protocol: str, kind: TransportKind) -> None:
        assert select_transport(protocol) is kind

    @pytest.mark.parametrize("protocol", ["FTP", "get", "", None])
    def test_unknown(self, protocol: str | None) -> None:
        assert select_transport(protocol) is None


class TestMultipartFields:
    def test_fields_are_numbered_from_one(self) -> None:
        files = [
            FileAttachment("a.txt", b"alpha", "text/plain"),
            FileAttachment("b.bin", b"\x00\x01"),
        ]
        data, parts = multipart_fields('{"payload": {}}', files)

        assert data == {"file-count": "2", "_json": '{"payload": {}}'}
        assert parts == {
            "file_1": ("a.txt", b"alpha", "text/plain"),
            "file_2": ("b.bin", b"\x00\x01", "application/octet-stream"),
        }


class TestHTTPTransport:
    @pytest.mark.anyio
    async def test_post_json(self, backend: MockBackend) -> None:
        backend.reply({"ok": True})
        transport = HTTPTransport(backend.client())

        result = await transport.post("http://backend.test/api", '{"payload": {}}', headers={"X-Extra": "1"})

        assert result == {"ok": True}
        request = backend.requests[0]
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/json"
        assert request.headers["x-extra"] == "1"
        assert request.content == b'{"payload": {}}'

    @pytest.mark.anyio
    async def test_post_multipart(self, backend: MockBackend) -> None:
        transport = HTTPTransport(backend.client())

        await transport.post(
            "http://backend.test/api",
            '{"payload": {}}',
            files=[FileAttachment("a.txt", b"alpha", "text/plain")],
        )

        request = backend.requests[0]
        assert request.is_multipart
        assert b'name="file-count"' in request.content
        assert b'name="_json"' in request.content
        assert b'name="file_1"; filename="a.txt"' in request.content
        assert b"alpha" in request.content

    @pytest.mark.anyio
    async def test_get_encodes_json_query(self, backend: MockBackend) -> None:
        transport = HTTPTransport(backend.client())

        await transport.get("http://backend.test/api", '{"payload": {"q": "a b"}}')

        request = backend.requests[0]
        assert request.method == "GET"
        assert "?_json=%7B%22payload%22" in request.url
        assert request.json_body == {"payload": {"q": "a b"}}
        assert request.headers["content-type"] == "application/json"

    @pytest.mark.anyio
    async def test_network_error_becomes_connection_failed(self, backend: MockBackend) -> None:
        error = httpx.ConnectError("boom")
        backend.fail_with(error)
        transport = HTTPTransport(backend.client())

        with pytest.raises(ConnectionFailed) as exc_info:
            await transport.post("http://backend.test/api", "{}")

        assert exc_info.value.cause is error

    @pytest.mark.anyio
    async def test_invalid_json_reply(self, backend: MockBackend) -> None:
        backend.reply("<html>oops</html>", status=500)
        transport = HTTPTransport(backend.client())

        with pytest.raises(ConnectionFailed, match="invalid JSON"):
            await transport.post("http://backend.test/api", "{}")

    @pytest.mark.anyio
    async def test_borrowed_client_is_not_closed(self, backend: MockBackend) -> None:
        client = backend.client()
        transport = HTTPTransport(client)

        await transport.aclose()

        assert not client.is_closed
        await client.aclose()
