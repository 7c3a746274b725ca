"""Payload contracts — the capability surfaces the router talks to.

The router never inspects payloads itself. It relies on two small
protocols:

``Serializable``
    Outbound payload objects that know how to turn themselves into a plain
    JSON mapping. Anything else handed to ``Router.dispatch()`` is treated
    as already-plain data.

``Contract``
    An advisory validator/shape-adapter for inbound payloads. An action that
    declares a contract type gets a fresh instance per message, populated
    with ``assign(payload)`` and checked with ``is_valid(context)`` before
    the handler runs.

``RuleContract`` is a ready-made contract built on :mod:`heimdall.validation`::

    class CreatePost(RuleContract):
        rules = {
            "title": [required, max_length(200)],
            "body": [required],
        }

    router.register_action("PostController", ActionDef("create", contract=CreatePost))

Contracts are not a trust boundary; a backend must still validate its input.
"""

from collections.abc import Mapping
from typing import Any, ClassVar, Protocol, runtime_checkable

from heimdall.validation import Validator, ValidationResult, validate


@runtime_checkable
class Serializable(Protocol):
    """A payload object that converts itself to a plain JSON mapping."""

    def to_plain_object(self) -> dict[str, Any]: ...


@runtime_checkable
class Contract(Protocol):
    """Validator for a received payload."""

    @property
    def errors(self) -> list[str]: ...

    def assign(self, payload: Mapping[str, Any]) -> None: ...

    def is_valid(self, context: Any = None) -> bool: ...


def normalize_payload(payload: Any) -> Any:
    """Return the plain-data form of an outbound payload."""
    if isinstance(payload, Serializable):
        return payload.to_plain_object()
    return payload


class RuleContract:
    """Contract checking payload fields against declarative rules.

    Subclasses set ``rules``. After ``is_valid()`` the last result is kept on
    ``result``; ``errors`` flattens it into ``"field: message"`` strings.
    ``to_plain_object()`` returns the validated fields, so a contract can be
    dispatched back to the backend as a payload.
    """

    rules: ClassVar[Mapping[str, list[Validator]]] = {}

    def __init__(self) -> None:
        self.payload: dict[str, Any] = {}
        self.result: ValidationResult | None = None

    def assign(self, payload: Mapping[str, Any]) -> None:
        self.payload = dict(payload or {})
        self.result = None

    def is_valid(self, context: Any = None) -> bool:
        self.result = validate(self.payload, self.rules)
        return self.result.is_valid

    @property
    def errors(self) -> list[str]:
        if self.result is None:
            return []
        return self.result.messages()

    def to_plain_object(self) -> dict[str, Any]:
        if self.result is not None and self.result.is_valid:
            return dict(self.result.data)
        return dict(self.payload)
