from deepetag._core._expression import KeyExpression as KeyExpression, parse_key_expression as parse_key_expression
from deepetag._core._headers import Headers as Headers
from deepetag._core._keys import (
    bind_variables as bind_variables,
    resolve_key as resolve_key,
    resolve_route_key as resolve_route_key,
)
from deepetag._core._spec import (
    AnyState as AnyState,
    Bypass as Bypass,
    EtagOptions as EtagOptions,
    KeyResolved as KeyResolved,
    NoKey as NoKey,
    NotModified as NotModified,
    NoVersion as NoVersion,
    ProceedAndStamp as ProceedAndStamp,
    Start as Start,
    State as State,
    VersionFetched as VersionFetched,
    create_start_state as create_start_state,
)
from deepetag._core._validators import to_validator as to_validator, validators_match as validators_match
from deepetag._core.models import (
    CacheableRoute as CacheableRoute,
    InvocationArguments as InvocationArguments,
    ParameterMetadata as ParameterMetadata,
)

__all__ = (
    "KeyExpression",
    "parse_key_expression",
    "Headers",
    "bind_variables",
    "resolve_key",
    "resolve_route_key",
    "AnyState",
    "Bypass",
    "EtagOptions",
    "KeyResolved",
    "NoKey",
    "NotModified",
    "NoVersion",
    "ProceedAndStamp",
    "Start",
    "State",
    "VersionFetched",
    "create_start_state",
    "to_validator",
    "validators_match",
    "CacheableRoute",
    "InvocationArguments",
    "ParameterMetadata",
)
