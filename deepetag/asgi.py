from __future__ import annotations

import logging
import typing as t

from deepetag._context import RequestContext, ResponseChannel, request_context
from deepetag._core._headers import Headers
from deepetag._core._spec import NOT_MODIFIED
from deepetag._utils import HEADERS_ENCODING, filter_raw_headers

# Configure logger for this module
logger = logging.getLogger(__name__)

# A 304 carries no content, so nothing may describe one
NOT_MODIFIED_EXCLUDED_HEADERS = ["Content-Length", "Content-Type", "Transfer-Encoding"]


class _ASGIScope(t.TypedDict, total=False):
    """ASGI HTTP scope type."""

    type: str
    asgi: dict[str, str]
    http_version: str
    method: str
    scheme: str
    path: str
    query_string: bytes
    root_path: str
    headers: list[tuple[bytes, bytes]]
    server: tuple[str, int | None] | None
    client: tuple[str, int] | None
    state: dict[str, t.Any]
    extensions: dict[str, t.Any]
    app: t.Any


_Scope = _ASGIScope
_Message = t.Dict[str, t.Any]
_Receive = t.Callable[[], t.Awaitable[_Message]]
_Send = t.Callable[[_Message], t.Awaitable[None]]
_ASGIApp = t.Callable[[_Scope, _Receive, _Send], t.Awaitable[None]]


class ASGIResponseChannel(ResponseChannel):
    """
    Response channel of one ASGI request.

    When the request is served by a Starlette (or FastAPI) application, a
    skipped handler returns a bodiless ``Response`` so that the framework
    sends it as is instead of validating or serializing ``None``. Plain ASGI
    applications get ``None``.
    """

    def __init__(self, scope: _Scope) -> None:
        super().__init__()
        # Starlette stores itself in the scope only once the request reaches it
        self._scope = scope

    def not_modified_result(self) -> t.Any:
        response_class = _host_response_class(self._scope)
        if response_class is None:
            return None
        return response_class(
            status_code=self.status_code if self.status_code is not None else NOT_MODIFIED,
            headers=dict(self.headers),
        )


def _host_response_class(scope: _Scope) -> t.Any:
    app = scope.get("app")
    if app is None:
        return None

    try:
        from starlette.applications import Starlette
        from starlette.responses import Response
    except ImportError:
        return None
    return Response if isinstance(app, Starlette) else None


class ASGIEtagMiddleware:
    """
    ASGI middleware that gives ``deep_etag`` handlers access to the current request.

    For every HTTP request it opens a request context holding the request
    headers and a response channel. Whatever status and headers the
    interceptor puts on the channel are merged into the application's
    ``http.response.start`` message. When the status becomes 304 the body is
    dropped along with the headers describing it. A skipped handler returns
    whatever ``ASGIResponseChannel.not_modified_result`` gives for the host
    application.

    Requests are isolated from each other: each one gets its own context and
    channel, held in a context variable.

    Args:
        app: The ASGI application to wrap.

    Example:
        ```python
        from fastapi import FastAPI

        from deepetag import deep_etag
        from deepetag.asgi import ASGIEtagMiddleware

        app = FastAPI()
        app.add_middleware(ASGIEtagMiddleware)


        @app.get("/demo/{id}")
        @deep_etag(provider=DemoProvider, key="#id")
        async def get_demo(id: str):
            return f"Hello {id}"
        ```
    """

    def __init__(self, app: _ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: _Scope, receive: _Receive, send: _Send) -> None:
        """
        Handle an ASGI request.

        Args:
            scope: The ASGI scope dictionary.
            receive: The ASGI receive callable.
            send: The ASGI send callable.
        """
        # Only handle HTTP requests
        if scope["type"] != "http":
            logger.debug("Skipping non-HTTP request: type=%s", scope["type"])
            await self.app(scope, receive, send)
            return

        context = RequestContext(
            method=scope.get("method", "GET"),
            path=scope.get("path", "/"),
            headers=Headers.from_raw(scope.get("headers", [])),
            response=ASGIResponseChannel(scope),
        )
        logger.debug("Opened request context: method=%s path=%s", context.method, context.path)

        not_modified = False

        # Closure over this request's context keeps concurrent requests apart
        async def send_with_validator(message: _Message) -> None:
            nonlocal not_modified

            if message["type"] == "http.response.start":
                message = self._apply_channel(message, context)
                not_modified = message["status"] == NOT_MODIFIED
                await send(message)
            elif message["type"] == "http.response.body" and not_modified:
                if not message.get("more_body", False):
                    await send({"type": "http.response.body", "body": b"", "more_body": False})
                    logger.debug("Sent empty body for not modified response: path=%s", context.path)
            else:
                await send(message)

        with request_context(context):
            await self.app(scope, receive, send_with_validator)

    def _apply_channel(self, message: _Message, context: RequestContext) -> _Message:
        channel = context.response
        assert channel is not None

        status = channel.status_code if channel.status_code is not None else message["status"]
        raw_headers = list(message.get("headers", []))

        if channel.headers:
            raw_headers = filter_raw_headers(raw_headers, channel.headers.keys()) + channel.headers.raw()
        if status == NOT_MODIFIED:
            raw_headers = filter_raw_headers(raw_headers, NOT_MODIFIED_EXCLUDED_HEADERS)

        if status != message["status"] or channel.headers:
            logger.debug(
                "Applied response channel: status=%d headers=%s",
                status,
                [key.decode(HEADERS_ENCODING) for key, _ in channel.headers.raw()],
            )
        return {**message, "status": status, "headers": raw_headers}
