"""Validation utilities for student input.

Provides:
- Required-field checks shared by every entry point
- Name normalization and the name-matching policy used at login
"""

import re
from typing import Any

from scsm.core.exceptions import ValidationError


_WHITESPACE_RUN = re.compile(r"\s+")


def missing_fields(**values: Any) -> list[str]:
    """Return the names of empty values (None, "", 0 or whitespace only).

    Examples:
        >>> missing_fields(name="Asha", mobile="", amount=0)
        ['mobile', 'amount']
    """
    missing = []
    for field_name, value in values.items():
        if isinstance(value, str):
            value = value.strip()
        if not value:
            missing.append(field_name)
    return missing


def require_fields(message: str, **values: Any) -> None:
    """Raise ValidationError naming the missing fields, if any."""
    missing = missing_fields(**values)
    if missing:
        raise ValidationError(f"{message}: {', '.join(missing)}")


def normalize_name(name: str) -> str:
    """Lower-case, collapse internal whitespace and trim.

    Example:
        >>> normalize_name("  Rahul   KUMAR ")
        'rahul kumar'
    """
    return _WHITESPACE_RUN.sub(" ", name.lower()).strip()


def names_match(stored: str, given: str) -> bool:
    """Name policy for login: exact equality after normalization.

    A partial name ("Rahul" for "Rahul Kumar") does not match.

    Examples:
        >>> names_match("Rahul Kumar", "rahul  kumar")
        True
        >>> names_match("Rahul Kumar", "Rahul")
        False
    """
    return normalize_name(stored) == normalize_name(given)
