"""Built-in validation rules for payload contracts.

Each validator is a callable with the signature::

    def rule(value: Any) -> str | None:
        '''Return error message, or None if valid.'''

Payload values come from decoded JSON, so a rule may see ``None``, numbers,
booleans, lists, or mappings, not only strings. Format rules only accept
strings.

Parameterized validators are factory functions that return a validator::

    def max_length(n: int) -> Validator:
        def check(value: Any) -> str | None:
            ...
        return check
"""

import re
from collections.abc import Callable, Sized
from typing import Any

type Validator = Callable[[Any], str | None]


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: Any) -> str | None:
    """Field must be present and non-empty."""
    if value is None:
        return "This field is required"
    if isinstance(value, str) and not value.strip():
        return "This field is required"
    if isinstance(value, (list, dict)) and not value:
        return "This field is required"
    return None


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Validator:
    """String or list must hold at most *n* items."""

    def check(value: Any) -> str | None:
        if isinstance(value, Sized) and len(value) > n:
            return f"Must be at most {n} characters"
        return None

    return check


def min_length(n: int) -> Validator:
    """String or list must hold at least *n* items."""

    def check(value: Any) -> str | None:
        if not isinstance(value, Sized) or len(value) < n:
            return f"Must be at least {n} characters"
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")

_URL_RE = re.compile(r"^https?://[^\s/$.?#].\S*$", re.IGNORECASE)


def email(value: Any) -> str | None:
    """Value must be a valid email address (basic format check)."""
    if not isinstance(value, str) or not _EMAIL_RE.match(value):
        return "Must be a valid email address"
    return None


def url(value: Any) -> str | None:
    """Value must be a valid URL (http/https)."""
    if not isinstance(value, str) or not _URL_RE.match(value):
        return "Must be a valid URL"
    return None


def matches(pattern: str, message: str | None = None) -> Validator:
    """Value must be a string matching the given regex pattern."""
    compiled = re.compile(pattern)

    def check(value: Any) -> str | None:
        if not isinstance(value, str) or not compiled.match(value):
            return message or f"Must match pattern: {pattern}"
        return None

    return check


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def one_of(*choices: Any) -> Validator:
    """Value must be one of the given choices."""
    allowed = tuple(choices)

    def check(value: Any) -> str | None:
        if value not in allowed:
            options = ", ".join(str(choice) for choice in allowed)
            return f"Must be one of: {options}"
        return None

    return check


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


def integer(value: Any) -> str | None:
    """Value must be a whole number (JSON integer or numeric string)."""
    if isinstance(value, bool):
        return "Must be a whole number"
    if isinstance(value, int):
        return None
    try:
        int(value)
    except (ValueError, TypeError):
        return "Must be a whole number"
    return None


def number(value: Any) -> str | None:
    """Value must be a number (int, float, or numeric string)."""
    if isinstance(value, bool):
        return "Must be a number"
    try:
        float(value)
    except (ValueError, TypeError):
        return "Must be a number"
    return None


def boolean(value: Any) -> str | None:
    """Value must be a JSON boolean."""
    if not isinstance(value, bool):
        return "Must be true or false"
    return None
