from deepetag._core._expression import KeyExpression as KeyExpression, parse_key_expression as parse_key_expression
from deepetag._core._headers import Headers as Headers
from deepetag._core._keys import bind_variables as bind_variables, resolve_key as resolve_key
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
)
from deepetag._core._validators import to_validator as to_validator, validators_match as validators_match
from deepetag._core.models import (
    CacheableRoute as CacheableRoute,
    InvocationArguments as InvocationArguments,
    ParameterMetadata as ParameterMetadata,
)
from deepetag._context import (
    RequestContext as RequestContext,
    ResponseChannel as ResponseChannel,
    current_request_context as current_request_context,
    request_context as request_context,
    require_request_context as require_request_context,
)
from deepetag._exceptions import (
    EtagError as EtagError,
    KeyExpressionError as KeyExpressionError,
    KeyResolutionFailure as KeyResolutionFailure,
    NoActiveRequestContext as NoActiveRequestContext,
    ProviderError as ProviderError,
    ProviderUnavailable as ProviderUnavailable,
)
from deepetag._providers import (
    AsyncVersionProvider as AsyncVersionProvider,
    ProviderRegistry as ProviderRegistry,
    VersionProvider as VersionProvider,
    default_registry as default_registry,
)
from deepetag._async._interceptor import AsyncEtagInterceptor as AsyncEtagInterceptor
from deepetag._sync._interceptor import SyncEtagInterceptor as SyncEtagInterceptor
from deepetag._decorators import deep_etag as deep_etag

__all__ = (
    ## States
    "AnyState",
    "Start",
    "KeyResolved",
    "VersionFetched",
    "NoKey",
    "NoVersion",
    "NotModified",
    "ProceedAndStamp",
    "Bypass",
    "State",
    "EtagOptions",
    ## Models
    "CacheableRoute",
    "InvocationArguments",
    "ParameterMetadata",
    ## Keys
    "KeyExpression",
    "parse_key_expression",
    "bind_variables",
    "resolve_key",
    ## Validators
    "to_validator",
    "validators_match",
    ## Headers
    "Headers",
    ## Request context
    "RequestContext",
    "ResponseChannel",
    "current_request_context",
    "request_context",
    "require_request_context",
    ## Providers
    "VersionProvider",
    "AsyncVersionProvider",
    "ProviderRegistry",
    "default_registry",
    ## Interceptors
    "AsyncEtagInterceptor",
    "SyncEtagInterceptor",
    "deep_etag",
    ## Exceptions
    "EtagError",
    "KeyExpressionError",
    "KeyResolutionFailure",
    "NoActiveRequestContext",
    "ProviderError",
    "ProviderUnavailable",
)
