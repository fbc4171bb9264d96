"""
Entity-tag helpers.

A validator is the quoted form of a version string. Comparison is a plain
string comparison: weak validators and lists of entity-tags in the
conditional header are not interpreted.
"""

from __future__ import annotations

from typing import Optional

DQUOTE = '"'


def to_validator(version: str) -> str:
    """
    Build the validator for a raw version string.

    A version that already starts with a double quote is assumed to be in
    validator form and is returned unchanged.

    Examples:
        >>> to_validator("v-123")
        '"v-123"'
        >>> to_validator('"v-123"')
        '"v-123"'
        >>> to_validator("")
        '""'
    """
    if version.startswith(DQUOTE):
        return version
    return f"{DQUOTE}{version}{DQUOTE}"


def validators_match(validator: str, conditional_header: Optional[str]) -> bool:
    """
    Check whether the client's conditional header selects ``validator``.

    Examples:
        >>> validators_match('"1"', '"1"')
        True
        >>> validators_match('"1"', "1")
        False
        >>> validators_match('"1"', None)
        False
    """
    if conditional_header is None:
        return False
    return validator == conditional_header
