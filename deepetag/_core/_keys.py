from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from deepetag._core._expression import parse_key_expression
from deepetag._core.models import CacheableRoute, InvocationArguments, ParameterMetadata

logger = logging.getLogger("deepetag.core.keys")


def synthetic_names(position: int) -> tuple[str, str]:
    """
    Placeholder variable names for an argument whose parameter name is unknown.

    Examples:
        >>> synthetic_names(0)
        ('p0', 'a0')
    """
    return f"p{position}", f"a{position}"


def has_reliable_names(parameter_names: Optional[Sequence[str]], argument_values: Sequence[Any]) -> bool:
    return parameter_names is not None and len(parameter_names) == len(argument_values)


def bind_variables(
    parameter_names: Optional[Sequence[str]],
    parameter_metadata: Sequence[ParameterMetadata],
    argument_values: Sequence[Any],
) -> Dict[str, Any]:
    """
    Build the variable set a key expression is evaluated against.

    With reliable parameter names each argument is bound under its name, and
    declared aliases are added where they don't shadow a name. Otherwise each
    argument is bound under its alias or, lacking one, under both synthetic
    positional names (``p0``/``a0``, ``p1``/``a1``, ...).
    """
    variables: Dict[str, Any] = {}

    if has_reliable_names(parameter_names, argument_values):
        assert parameter_names is not None
        variables.update(zip(parameter_names, argument_values))
        for metadata, value in zip(parameter_metadata, argument_values):
            if metadata.alias and metadata.alias not in variables:
                variables[metadata.alias] = value
        return variables

    for position, value in enumerate(argument_values):
        metadata = parameter_metadata[position] if position < len(parameter_metadata) else ParameterMetadata()
        if metadata.alias:
            variables[metadata.alias] = value
        else:
            for name in synthetic_names(position):
                variables[name] = value
    return variables


def resolve_key(
    expression: Optional[str],
    parameter_names: Optional[Sequence[str]],
    parameter_metadata: Sequence[ParameterMetadata],
    argument_values: Sequence[Any],
) -> Any:
    """
    Extract the resource key from one invocation's arguments.

    Returns ``None`` when there is no expression, when it evaluates to
    ``None``, or when it cannot be evaluated. Evaluation errors never escape.
    """
    if not expression:
        return None

    variables = bind_variables(parameter_names, parameter_metadata, argument_values)
    try:
        return parse_key_expression(expression).evaluate(variables)
    except Exception as exc:
        logger.debug("Could not resolve key expression %r: %s", expression, exc)
        return None


def resolve_route_key(route: CacheableRoute, arguments: InvocationArguments) -> Any:
    return resolve_key(
        route.key_expression,
        route.parameter_names,
        route.parameter_metadata,
        arguments.values,
    )
