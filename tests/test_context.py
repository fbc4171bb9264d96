from __future__ import annotations

import asyncio

import pytest

from deepetag import (
    Headers,
    NoActiveRequestContext,
    RequestContext,
    ResponseChannel,
    current_request_context,
    request_context,
    require_request_context,
)


def test_no_context_outside_of_request():
    assert current_request_context() is None
    with pytest.raises(NoActiveRequestContext, match="No request is being processed in the current context"):
        require_request_context()


def test_request_context_is_reset():
    context = RequestContext(path="/demo/7")

    with request_context(context) as current:
        assert current is context
        assert current_request_context() is context
        assert require_request_context() is context

    assert current_request_context() is None


def test_request_context_nesting():
    outer = RequestContext(path="/outer")
    inner = RequestContext(path="/inner")

    with request_context(outer):
        with request_context(inner):
            assert current_request_context() is inner
        assert current_request_context() is outer


def test_request_context_is_reset_on_error():
    with pytest.raises(RuntimeError):
        with request_context(RequestContext()):
            raise RuntimeError()

    assert current_request_context() is None


@pytest.mark.anyio
async def test_concurrent_requests_are_isolated():
    seen = {}

    async def handle(path: str) -> None:
        with request_context(RequestContext(path=path)):
            await asyncio.sleep(0)
            seen[path] = require_request_context().path

    await asyncio.gather(handle("/a"), handle("/b"))

    assert seen == {"/a": "/a", "/b": "/b"}


def test_default_request_context():
    context = RequestContext()

    assert context.method == "GET"
    assert context.path == "/"
    assert context.headers == Headers()
    assert isinstance(context.response, ResponseChannel)


def test_response_channel():
    channel = ResponseChannel()
    assert channel.status_code is None
    assert len(channel.headers) == 0

    channel.set_status(304)
    channel.set_header("ETag", '"v1"')
    channel.set_header("etag", '"v2"')

    assert channel.status_code == 304
    assert channel.headers.get_list("ETag") == ['"v2"']


def test_response_channel_results():
    channel = ResponseChannel()

    assert channel.not_modified_result() is None
    result = object()
    assert channel.stamp(result) is result
