"""Tests for heimdall.errors — exception hierarchy."""

from heimdall.errors import (
    ConfigurationError,
    ConnectionFailed,
    HeimdallError,
    TransportError,
    UnknownProtocolError,
)


class TestHierarchy:
    def test_configuration_error_is_heimdall_error(self) -> None:
        assert issubclass(ConfigurationError, HeimdallError)

    def test_transport_errors(self) -> None:
        assert issubclass(TransportError, HeimdallError)
        assert issubclass(UnknownProtocolError, TransportError)
        assert issubclass(ConnectionFailed, TransportError)


class TestTransportError:
    def test_keeps_cause(self) -> None:
        cause = OSError("reset")
        err = ConnectionFailed("POST failed", cause)
        assert err.cause is cause
        assert str(err) == "POST failed"

    def test_unknown_protocol_message(self) -> None:
        err = UnknownProtocolError("FTP")
        assert err.protocol == "FTP"
        assert str(err) == "Unknown protocol: FTP"
        assert err.cause is None
