"""Payload validation — composable rules, clean results.

Usage::

    from heimdall.validation import validate, required, max_length, integer

    result = validate(package.payload, {
        "title": [required, max_length(200)],
        "count": [required, integer],
    })
    if not result:
        ...  # result.errors == {"count": ["Must be a whole number"]}
"""

from collections.abc import Mapping
from typing import Any

from heimdall.validation.result import ValidationResult
from heimdall.validation.rules import (
    Validator,
    boolean,
    email,
    integer,
    matches,
    max_length,
    min_length,
    number,
    one_of,
    required,
    url,
)

__all__ = [
    "ValidationResult",
    "Validator",
    "boolean",
    "email",
    "integer",
    "matches",
    "max_length",
    "min_length",
    "number",
    "one_of",
    "required",
    "url",
    "validate",
]


def validate(
    data: Mapping[str, Any],
    rules: Mapping[str, list[Validator]],
) -> ValidationResult:
    """Validate a payload mapping against a set of rules.

    Fields that are absent and not ``required`` are skipped, so optional
    fields only get checked when the sender includes them.

    Returns:
        A ``ValidationResult`` with ``.data`` (values of fields that
        passed) and ``.errors`` (field → list of error messages).
    """
    errors: dict[str, list[str]] = {}
    cleaned: dict[str, Any] = {}

    for field_name, validators in rules.items():
        value = data.get(field_name)
        if value is None and required not in validators:
            continue

        field_errors: list[str] = []
        for validator in validators:
            error = validator(value)
            if error is not None:
                field_errors.append(error)
                # No point running format checks on a missing value
                if validator is required:
                    break

        if field_errors:
            errors[field_name] = field_errors
        else:
            cleaned[field_name] = value

    return ValidationResult(data=cleaned, errors=errors)
