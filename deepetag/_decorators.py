from __future__ import annotations

import functools
import inspect
import typing as t

from deepetag._async._interceptor import AsyncEtagInterceptor
from deepetag._core._spec import EtagOptions
from deepetag._core.models import CacheableRoute
from deepetag._providers import ProviderIdentity, ProviderRegistry
from deepetag._sync._interceptor import SyncEtagInterceptor

F = t.TypeVar("F", bound=t.Callable[..., t.Any])

ROUTE_ATTRIBUTE = "__deepetag_route__"


def deep_etag(
    *,
    provider: ProviderIdentity,
    key: str,
    registry: ProviderRegistry | None = None,
    options: EtagOptions | None = None,
) -> t.Callable[[F], F]:
    """
    Mark a request handler as conditional-cache aware.

    The wrapped handler consults the current request context (established by
    ``deepetag.asgi.ASGIEtagMiddleware`` or ``deepetag.request_context``).
    Outside of a request it behaves exactly like the undecorated handler.

    Args:
        provider: Identity of the version provider: its class, the name it was
            registered under, or the provider instance itself.
        key: Key expression selecting the argument that identifies the
            resource, e.g. ``"#id"`` or ``"#request.path_params.id"``.
        registry: Registry the provider is looked up in. Defaults to
            ``deepetag.default_registry``.
        options: Interceptor options.

    Example:
        ```python
        @app.get("/articles/{id}")
        @deep_etag(provider=ArticleVersions, key="#id")
        async def get_article(id: str):
            ...
        ```

    Coroutine functions are wrapped with an async interceptor, anything else
    with a sync one. Signature and metadata are preserved, so frameworks that
    inspect the handler still see the original parameters.
    """

    def decorator(handler: F) -> F:
        route = CacheableRoute.from_handler(handler, provider=provider, key_expression=key)

        if inspect.iscoroutinefunction(handler):
            async_interceptor = AsyncEtagInterceptor(registry=registry, options=options)

            @functools.wraps(handler)
            async def async_wrapper(*args: t.Any, **kwargs: t.Any) -> t.Any:
                return await async_interceptor.intercept(
                    route,
                    route.bind(args, kwargs),
                    lambda: handler(*args, **kwargs),
                )

            setattr(async_wrapper, ROUTE_ATTRIBUTE, route)
            return t.cast(F, async_wrapper)

        sync_interceptor = SyncEtagInterceptor(registry=registry, options=options)

        @functools.wraps(handler)
        def sync_wrapper(*args: t.Any, **kwargs: t.Any) -> t.Any:
            return sync_interceptor.intercept(
                route,
                route.bind(args, kwargs),
                lambda: handler(*args, **kwargs),
            )

        setattr(sync_wrapper, ROUTE_ATTRIBUTE, route)
        return t.cast(F, sync_wrapper)

    return decorator
