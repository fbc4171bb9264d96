from __future__ import annotations

import logging
from typing import Any, Optional

from typing_extensions import assert_never

from deepetag._context import RequestContext, current_request_context
from deepetag._core._spec import (
    NOT_MODIFIED,
    AnyState,
    Bypass,
    EtagOptions,
    KeyResolved,
    NoKey,
    NotModified,
    NoVersion,
    ProceedAndStamp,
    Start,
    VersionFetched,
)
from deepetag._core.models import Proceed, CacheableRoute, InvocationArguments, T
from deepetag._exceptions import ProviderError, ProviderUnavailable
from deepetag._providers import ProviderRegistry, default_registry
from deepetag._utils import resolve_awaitable

logger = logging.getLogger("deepetag.interceptor")


class SyncEtagInterceptor:
    """
    Conditional-request interceptor for handler invocations.

    For every call it resolves the route's key from the handler arguments, asks
    the route's provider for the current version and compares the resulting
    validator with the client's conditional header. On a match the handler is
    skipped and a 304 is produced; otherwise the handler runs and its response
    is stamped with the validator.

    Any failure while computing the validator makes the call proceed as if the
    handler were not cache-aware. Errors raised by the handler itself are never
    caught.

    Args:
        registry: Where provider identities are resolved. Defaults to
            ``deepetag.default_registry``.
        options: Interceptor options. Defaults to ``EtagOptions()``.
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        options: EtagOptions | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self.options = options if options is not None else EtagOptions()

    def intercept(
        self,
        route: CacheableRoute,
        arguments: InvocationArguments,
        proceed: Proceed[T],
        context: Optional[RequestContext] = None,
    ) -> T | Any:
        if context is None:
            context = current_request_context()

        state: AnyState = Start(route=route, options=self.options)

        try:
            while isinstance(state, (Start, KeyResolved, VersionFetched)):
                logger.debug(f"Handling state: {state.__class__.__name__}")
                if isinstance(state, Start):
                    state = state.next(context, arguments)
                elif isinstance(state, KeyResolved):
                    state = self._handle_key_resolved(state)
                elif isinstance(state, VersionFetched):
                    assert context is not None
                    state = state.next(context.headers.get(self.options.conditional_header))
                else:
                    assert_never(state)
        except Exception:
            logger.warning(
                "Failed to evaluate ETag for request %s. Proceeding without ETag.",
                context.path if context is not None else "<unknown>",
                exc_info=True,
            )
            state = Bypass(route=route, options=self.options, reason="evaluation failed")

        logger.debug(f"Handling state: {state.__class__.__name__}")
        if isinstance(state, NotModified):
            assert context is not None
            return self._handle_not_modified(state, context)
        elif isinstance(state, ProceedAndStamp):
            assert context is not None
            return self._handle_proceed_and_stamp(state, context, proceed)
        elif isinstance(state, (Bypass, NoKey, NoVersion)):
            return proceed()
        else:
            assert_never(state)

    def _handle_key_resolved(self, state: KeyResolved) -> AnyState:
        try:
            provider = self.registry.lookup(state.route.provider)
        except ProviderUnavailable as exc:
            logger.debug("Version provider unavailable: %s", exc)
            return state.next(None)

        try:
            version = resolve_awaitable(provider.get_version(state.key))
        except Exception as exc:
            error = ProviderError(f"{type(provider).__name__}.get_version({state.key!r}) failed: {exc!r}")
            logger.warning("%s. Proceeding without ETag.", error, exc_info=True)
            return state.next(None)

        return state.next(version)

    def _handle_not_modified(self, state: NotModified, context: RequestContext) -> Any:
        response = context.response
        assert response is not None

        response.set_status(NOT_MODIFIED)
        if self.options.etag_on_not_modified:
            response.set_header(self.options.validator_header, state.validator)
        return response.not_modified_result()

    def _handle_proceed_and_stamp(
        self, state: ProceedAndStamp, context: RequestContext, proceed: Proceed[T]
    ) -> T:
        result = proceed()

        response = context.response
        assert response is not None
        response.set_header(self.options.validator_header, state.validator)
        return response.stamp(result)  # type: ignore[no-any-return]
