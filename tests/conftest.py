"""Shared fixtures for heimdall tests."""

import pytest

from heimdall.config import RouterConfig
from heimdall.router import Router
from heimdall.testing import MockBackend


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def backend() -> MockBackend:
    return MockBackend()


@pytest.fixture
def router(backend: MockBackend) -> Router:
    """A router on ``http://backend.test`` answering through ``backend``."""
    return Router(RouterConfig(host="http://backend.test"), client=backend.client())
