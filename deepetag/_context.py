from __future__ import annotations

import contextvars
import typing as t
from contextlib import contextmanager
from dataclasses import dataclass, field

from deepetag._core._headers import Headers
from deepetag._exceptions import NoActiveRequestContext


class ResponseChannel:
    """
    The part of the outgoing response the interceptor is allowed to touch.

    Integrations subclass it to write through to their framework's response
    object and to decide what a "not modified" handler result looks like.
    """

    def __init__(self) -> None:
        self.status_code: int | None = None
        self.headers = Headers()

    def set_status(self, status_code: int) -> None:
        self.status_code = status_code

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def not_modified_result(self) -> t.Any:
        return None

    def stamp(self, result: t.Any) -> t.Any:
        """Apply the channel's headers to a handler result, if it carries any."""
        return result


@dataclass
class RequestContext:
    method: str = "GET"
    path: str = "/"
    headers: Headers = field(default_factory=Headers)
    response: ResponseChannel | None = field(default_factory=ResponseChannel)


_current_context: contextvars.ContextVar[RequestContext | None] = contextvars.ContextVar(
    "deepetag_request_context", default=None
)


def current_request_context() -> RequestContext | None:
    return _current_context.get()


def require_request_context() -> RequestContext:
    context = _current_context.get()
    if context is None:
        raise NoActiveRequestContext("No request is being processed in the current context")
    return context


@contextmanager
def request_context(context: RequestContext) -> t.Iterator[RequestContext]:
    """
    Make ``context`` the current request context for the duration of the block.

    Example:
        ```python
        with request_context(RequestContext(headers=Headers({"If-None-Match": '"v1"'}))) as ctx:
            handler("42")
        assert ctx.response.status_code == 304
        ```
    """
    token = _current_context.set(context)
    try:
        yield context
    finally:
        _current_context.reset(token)
