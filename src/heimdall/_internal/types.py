"""Shared type aliases used across heimdall modules."""

from collections.abc import Callable
from typing import Any

# Decoded JSON object as it travels on the wire
type JSONObject = dict[str, Any]

# Action callback or listener, called with an ActionData record
type ActionCallback = Callable[..., Any]

# Connection-failure callback, called with a TransportError
type FailureCallback = Callable[..., Any]
