from __future__ import annotations

import functools
import inspect
import logging
import typing as t

from deepetag._async._interceptor import AsyncEtagInterceptor
from deepetag._context import RequestContext, ResponseChannel
from deepetag._core._headers import Headers
from deepetag._core._spec import NOT_MODIFIED, EtagOptions
from deepetag._core.models import CacheableRoute, resolve_type_hints
from deepetag._providers import ProviderIdentity, ProviderRegistry, default_registry
from deepetag._sync._interceptor import SyncEtagInterceptor

try:
    import fastapi
except ImportError as e:
    raise ImportError(
        "fastapi is required to use deepetag.fastapi module. "
        "Please install deepetag with the 'fastapi' extra, "
        "e.g., 'pip install deepetag[fastapi]'."
    ) from e

logger = logging.getLogger("deepetag.fastapi")

F = t.TypeVar("F", bound=t.Callable[..., t.Any])

REQUEST_PARAMETER = "_deepetag_request"
RESPONSE_PARAMETER = "_deepetag_response"
REGISTRY_STATE_ATTRIBUTE = "etag_registry"


class FastAPIResponseChannel(ResponseChannel):
    """Response channel writing through to the response FastAPI injected into the endpoint."""

    def __init__(self, response: fastapi.Response) -> None:
        super().__init__()
        self._response = response

    def set_header(self, name: str, value: str) -> None:
        super().set_header(name, value)
        self._response.headers[name] = value

    def not_modified_result(self) -> fastapi.Response:
        return fastapi.Response(
            status_code=self.status_code if self.status_code is not None else NOT_MODIFIED,
            headers=dict(self.headers),
        )

    def stamp(self, result: t.Any) -> t.Any:
        # FastAPI ignores the injected response when the endpoint returns its own
        if isinstance(result, fastapi.Response):
            for name, value in self.headers.items():
                result.headers[name] = value
        return result


def _augment_signature(endpoint: t.Callable[..., t.Any]) -> inspect.Signature:
    signature = inspect.signature(endpoint)
    hints = resolve_type_hints(endpoint)

    parameters = [
        parameter.replace(annotation=hints.get(parameter.name, parameter.annotation))
        for parameter in signature.parameters.values()
    ]
    injected = [
        inspect.Parameter(REQUEST_PARAMETER, inspect.Parameter.KEYWORD_ONLY, annotation=fastapi.Request),
        inspect.Parameter(RESPONSE_PARAMETER, inspect.Parameter.KEYWORD_ONLY, annotation=fastapi.Response),
    ]

    # Keyword-only parameters must come before **kwargs
    var_keyword = [p for p in parameters if p.kind is inspect.Parameter.VAR_KEYWORD]
    parameters = [p for p in parameters if p.kind is not inspect.Parameter.VAR_KEYWORD]

    return signature.replace(
        parameters=parameters + injected + var_keyword,
        return_annotation=hints.get("return", signature.return_annotation),
    )


def _resolve_registry(request: fastapi.Request, registry: ProviderRegistry | None) -> ProviderRegistry:
    if registry is not None:
        return registry
    app_registry = getattr(request.app.state, REGISTRY_STATE_ATTRIBUTE, None)
    if isinstance(app_registry, ProviderRegistry):
        return app_registry
    return default_registry


def _request_context(request: fastapi.Request, response: fastapi.Response) -> RequestContext:
    return RequestContext(
        method=request.method,
        path=request.url.path,
        headers=Headers.from_raw(request.headers.raw),
        response=FastAPIResponseChannel(response),
    )


def deep_etag(
    *,
    provider: ProviderIdentity,
    key: str,
    registry: ProviderRegistry | None = None,
    options: EtagOptions | None = None,
) -> t.Callable[[F], F]:
    """
    Add ETag-based conditional request handling to a FastAPI endpoint.

    Unlike ``deepetag.deep_etag`` this needs no middleware: the request and
    the response are injected into the endpoint by FastAPI itself and hidden
    from the endpoint function.

    Args:
        provider: Identity of the version provider: its class, its registered
            name, or the provider instance.
        key: Key expression selecting the argument that identifies the
            resource, e.g. ``"#id"``.
        registry: Registry the provider is looked up in. Defaults to
            ``app.state.etag_registry`` when the application defines one,
            then to ``deepetag.default_registry``.
        options: Interceptor options.

    Returns:
        A decorator for FastAPI endpoints.

    Examples:
        >>> from fastapi import FastAPI
        >>> from deepetag import ProviderRegistry, VersionProvider
        >>> from deepetag.fastapi import deep_etag
        >>>
        >>> class DemoProvider(VersionProvider):
        ...     def get_version(self, key):
        ...         return f"version-of-{key}"
        >>>
        >>> app = FastAPI()
        >>> app.state.etag_registry = ProviderRegistry([DemoProvider()])
        >>>
        >>> # GET /demo/7                                 -> 200, ETag: "version-of-7"
        >>> # GET /demo/7 If-None-Match: "version-of-7"   -> 304, endpoint not called
        >>> @app.get("/demo/{id}")
        ... @deep_etag(provider=DemoProvider, key="#id")
        ... async def get_demo(id: str):
        ...     return f"Hello {id}"

    Notes:
        - The route decorator must be applied last (written first), so that
          FastAPI registers the augmented endpoint.
        - When the endpoint returns a ``Response`` itself, the ETag header is
          set on that response.
    """

    def decorator(endpoint: F) -> F:
        route = CacheableRoute.from_handler(endpoint, provider=provider, key_expression=key)
        signature = _augment_signature(endpoint)
        logger.debug("Enabled ETag handling for endpoint %s with key %r", endpoint.__qualname__, key)

        if inspect.iscoroutinefunction(endpoint):

            @functools.wraps(endpoint)
            async def async_endpoint(*args: t.Any, **kwargs: t.Any) -> t.Any:
                request: fastapi.Request = kwargs.pop(REQUEST_PARAMETER)
                response: fastapi.Response = kwargs.pop(RESPONSE_PARAMETER)

                interceptor = AsyncEtagInterceptor(registry=_resolve_registry(request, registry), options=options)
                return await interceptor.intercept(
                    route,
                    route.bind(args, kwargs),
                    lambda: endpoint(*args, **kwargs),
                    context=_request_context(request, response),
                )

            async_endpoint.__signature__ = signature  # type: ignore[attr-defined]
            return t.cast(F, async_endpoint)

        @functools.wraps(endpoint)
        def sync_endpoint(*args: t.Any, **kwargs: t.Any) -> t.Any:
            request: fastapi.Request = kwargs.pop(REQUEST_PARAMETER)
            response: fastapi.Response = kwargs.pop(RESPONSE_PARAMETER)

            interceptor = SyncEtagInterceptor(registry=_resolve_registry(request, registry), options=options)
            return interceptor.intercept(
                route,
                route.bind(args, kwargs),
                lambda: endpoint(*args, **kwargs),
                context=_request_context(request, response),
            )

        sync_endpoint.__signature__ = signature  # type: ignore[attr-defined]
        return t.cast(F, sync_endpoint)

    return decorator
