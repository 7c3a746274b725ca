"""Validation result — immutable container for validated payload or errors."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating a payload against a set of rules.

    The result is falsy when invalid, so you can write::

        result = validate(payload, rules)
        if not result:
            log(result.errors)

    ``data`` holds the values of every field that passed its rules.
    ``errors`` maps field names to lists of error messages::

        {"title": ["This field is required"],
         "count": ["Must be a whole number"]}
    """

    data: dict[str, Any]
    errors: dict[str, list[str]]

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no errors."""
        return not self.errors

    def __bool__(self) -> bool:
        return self.is_valid

    def messages(self) -> list[str]:
        """Flatten errors into ``"field: message"`` strings, field order kept."""
        return [f"{name}: {message}" for name, found in self.errors.items() for message in found]
