"""
String utility functions for typestate.

Identifier checks and case conversions used when naming generated
state classes, setters, and helper functions.
"""

from __future__ import annotations

import keyword
import re

_PREFIX_CHARS = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def snake_to_pascal(name: str) -> str:
    """
    Convert a snake_case identifier to PascalCase.

    Leading and doubled underscores are dropped; digits are kept.

    Examples:
        >>> snake_to_pascal("api_key")
        'ApiKey'
        >>> snake_to_pascal("_private_field")
        'PrivateField'
        >>> snake_to_pascal("x2")
        'X2'
    """
    parts = [p for p in name.split("_") if p]
    return "".join(p[0].upper() + p[1:] for p in parts)


def is_identifier(name: str) -> bool:
    """Check if name is a usable Python identifier (not a keyword)."""
    return bool(name) and name.isidentifier() and not keyword.iskeyword(name)


def is_identifier_prefix(prefix: str) -> bool:
    """
    Check if prefix can start an identifier.

    A prefix is combined with a field name to form a setter name, so it
    only needs identifier characters and must not start with a digit.
    """
    return bool(_PREFIX_CHARS.match(prefix))


def is_dotted_name(name: str) -> bool:
    """Check if name is a dotted path of identifiers (e.g. ``str.upper``)."""
    return bool(name) and all(is_identifier(part) for part in name.split("."))
