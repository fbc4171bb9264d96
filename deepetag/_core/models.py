from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from typing_extensions import Annotated, get_args, get_origin, get_type_hints

if TYPE_CHECKING:
    from deepetag._providers import ProviderIdentity

logger = logging.getLogger("deepetag.core.models")

T = TypeVar("T")

AsyncProceed = Callable[[], Awaitable[T]]
"""Runs the wrapped handler. Called at most once per invocation."""

Proceed = Callable[[], T]


@dataclass(frozen=True)
class ParameterMetadata:
    alias: Optional[str] = None
    """
    Routing-level name of the parameter, e.g. the path segment or query
    parameter it is bound from when that differs from the Python name.
    """

    @classmethod
    def from_parameter(cls, parameter: inspect.Parameter, annotation: Any = inspect.Parameter.empty) -> "ParameterMetadata":
        """
        Discover the alias declared for a handler parameter.

        Any object carrying a non-empty string ``alias`` attribute counts, found
        either as the parameter default (``id: str = Path(alias="id")``) or in
        ``Annotated`` metadata (``id: Annotated[str, Query(alias="id")]``).
        """
        if annotation is inspect.Parameter.empty:
            annotation = parameter.annotation

        candidates = [parameter.default]
        if get_origin(annotation) is Annotated:
            candidates.extend(get_args(annotation)[1:])

        for candidate in candidates:
            alias = getattr(candidate, "alias", None)
            if isinstance(alias, str) and alias:
                return cls(alias=alias)
        return cls()


@dataclass(frozen=True)
class InvocationArguments:
    values: Tuple[Any, ...] = ()

    def __len__(self) -> int:
        return len(self.values)


def resolve_type_hints(handler: Callable[..., Any]) -> Dict[str, Any]:
    try:
        return get_type_hints(handler, include_extras=True)
    except Exception:
        return {}


@dataclass(frozen=True)
class CacheableRoute:
    """
    Conditional-caching declaration for one handler.

    Attributes:
        provider: Identity of the version provider, resolved through a
            ``ProviderRegistry`` on every call.
        key_expression: Expression selecting the argument that identifies the
            resource, e.g. ``"#id"``.
        parameter_names: Handler parameter names in declaration order, or
            ``None`` when they could not be discovered.
        parameter_metadata: Per-parameter routing metadata, aligned with the
            handler's positional order.
    """

    provider: ProviderIdentity
    key_expression: str
    parameter_names: Optional[Tuple[str, ...]] = None
    parameter_metadata: Tuple[ParameterMetadata, ...] = ()
    signature: Optional[inspect.Signature] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_handler(
        cls,
        handler: Callable[..., Any],
        *,
        provider: ProviderIdentity,
        key_expression: str,
    ) -> "CacheableRoute":
        try:
            signature = inspect.signature(handler)
        except (TypeError, ValueError):
            logger.debug("Could not inspect the signature of %r, parameter names are unavailable", handler)
            return cls(provider=provider, key_expression=key_expression)

        hints = resolve_type_hints(handler)
        names = []
        metadata = []
        for parameter in signature.parameters.values():
            names.append(parameter.name)
            metadata.append(ParameterMetadata.from_parameter(parameter, hints.get(parameter.name, parameter.annotation)))

        return cls(
            provider=provider,
            key_expression=key_expression,
            parameter_names=tuple(names),
            parameter_metadata=tuple(metadata),
            signature=signature,
        )

    def bind(self, args: Sequence[Any], kwargs: Mapping[str, Any]) -> InvocationArguments:
        """Align the concrete arguments of one call with the handler's parameters."""
        if self.signature is None:
            return InvocationArguments(tuple(args) + tuple(kwargs.values()))

        try:
            bound = self.signature.bind_partial(*args, **kwargs)
        except TypeError:
            # The handler call itself will fail; keep whatever order we were given.
            return InvocationArguments(tuple(args) + tuple(kwargs.values()))

        values = []
        for name, parameter in self.signature.parameters.items():
            if name in bound.arguments:
                values.append(bound.arguments[name])
            elif parameter.default is not inspect.Parameter.empty:
                values.append(parameter.default)
            else:
                values.append(None)
        return InvocationArguments(tuple(values))
