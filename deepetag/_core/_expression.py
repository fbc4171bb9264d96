"""
Key expressions.

A key expression names the handler argument that identifies the resource:

    #id           -> the value bound to ``id``
    id            -> same, the ``#`` prefix is optional
    #user.id      -> attribute (or mapping item) ``id`` of ``user``

Nothing beyond variable lookup and property navigation is supported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping, Tuple

from deepetag._exceptions import KeyExpressionError, KeyResolutionFailure

IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"
EXPRESSION_RE = re.compile(rf"^\s*#?(?P<variable>{IDENTIFIER})(?P<path>(?:\.{IDENTIFIER})*)\s*$")


@dataclass(frozen=True)
class KeyExpression:
    source: str
    variable: str
    path: Tuple[str, ...] = ()

    def evaluate(self, variables: Mapping[str, Any]) -> Any:
        """
        Evaluate the expression against a set of named variables.

        Raises:
            KeyResolutionFailure: the variable is not bound, or a step of the
                property path does not exist.
        """
        if self.variable not in variables:
            raise KeyResolutionFailure(f"Variable '{self.variable}' is not bound in expression {self.source!r}")

        value = variables[self.variable]
        for step in self.path:
            if value is None:
                return None
            value = _navigate(value, step, self.source)
        return value


def _navigate(value: Any, step: str, source: str) -> Any:
    if isinstance(value, Mapping):
        try:
            return value[step]
        except KeyError:
            raise KeyResolutionFailure(f"Key '{step}' not found while evaluating {source!r}") from None
    try:
        return getattr(value, step)
    except AttributeError:
        raise KeyResolutionFailure(
            f"'{type(value).__name__}' object has no attribute '{step}' (evaluating {source!r})"
        ) from None


@lru_cache(maxsize=256)
def parse_key_expression(source: str) -> KeyExpression:
    """
    Parse a key expression.

    Examples:
        >>> parse_key_expression("#id")
        KeyExpression(source='#id', variable='id', path=())
        >>> parse_key_expression("#user.profile.id").path
        ('profile', 'id')

    Raises:
        KeyExpressionError: the expression is not a variable reference.
    """
    match = EXPRESSION_RE.match(source)
    if match is None:
        raise KeyExpressionError(f"Malformed key expression: {source!r}")

    path = tuple(step for step in match.group("path").split(".") if step)
    return KeyExpression(source=source, variable=match.group("variable"), path=path)
