from __future__ import annotations

import pytest

from deepetag import (
    Bypass,
    CacheableRoute,
    EtagOptions,
    Headers,
    InvocationArguments,
    KeyResolved,
    NoKey,
    NotModified,
    NoVersion,
    ParameterMetadata,
    ProceedAndStamp,
    RequestContext,
    Start,
    VersionFetched,
)
from deepetag._core._spec import create_start_state

ROUTE = CacheableRoute(
    provider="demo",
    key_expression="#id",
    parameter_names=("id",),
    parameter_metadata=(ParameterMetadata(),),
)


def start() -> Start:
    return create_start_state(ROUTE)


def test_start_without_context() -> None:
    state = start().next(None, InvocationArguments(("7",)))
    assert isinstance(state, Bypass)
    assert state.reason == "no active request"


def test_start_without_response_channel() -> None:
    state = start().next(RequestContext(response=None), InvocationArguments(("7",)))
    assert isinstance(state, Bypass)
    assert state.reason == "no response channel"


def test_start_disabled() -> None:
    state = Start(route=ROUTE, options=EtagOptions(enabled=False)).next(RequestContext(), InvocationArguments(("7",)))
    assert isinstance(state, Bypass)
    assert state.reason == "disabled"


def test_start_resolves_key() -> None:
    state = start().next(RequestContext(), InvocationArguments(("7",)))
    assert isinstance(state, KeyResolved)
    assert state.key == "7"
    assert state.route is ROUTE


def test_start_without_key() -> None:
    state = start().next(RequestContext(), InvocationArguments((None,)))
    assert isinstance(state, NoKey)


def test_key_resolved_without_version() -> None:
    state = KeyResolved(route=ROUTE, options=EtagOptions(), key="7").next(None)
    assert isinstance(state, NoVersion)
    assert state.key == "7"


@pytest.mark.parametrize(
    "version, validator",
    [("v-7", '"v-7"'), ('"v-7"', '"v-7"'), (7, '"7"')],
)
def test_key_resolved_with_version(version: object, validator: str) -> None:
    state = KeyResolved(route=ROUTE, options=EtagOptions(), key="7").next(version)
    assert isinstance(state, VersionFetched)
    assert state.validator == validator


def test_version_fetched_matching_header() -> None:
    fetched = VersionFetched(route=ROUTE, options=EtagOptions(), key="7", version="v-7", validator='"v-7"')
    state = fetched.next('"v-7"')
    assert isinstance(state, NotModified)
    assert state.validator == '"v-7"'


@pytest.mark.parametrize("header", [None, '"v-6"', "v-7"])
def test_version_fetched_other_header(header: str | None) -> None:
    fetched = VersionFetched(route=ROUTE, options=EtagOptions(), key="7", version="v-7", validator='"v-7"')
    state = fetched.next(header)
    assert isinstance(state, ProceedAndStamp)
    assert state.validator == '"v-7"'


@pytest.mark.parametrize("state_cls", [NoKey, NotModified, ProceedAndStamp, Bypass, NoVersion])
def test_terminal_states(state_cls: type) -> None:
    fields = {"NotModified": {"validator": '"1"'}, "ProceedAndStamp": {"validator": '"1"'}}
    extra = fields.get(state_cls.__name__, {})
    if state_cls is Bypass:
        extra = {"reason": "test"}
    if state_cls is NoVersion:
        extra = {"key": "7"}
    assert state_cls(route=ROUTE, options=EtagOptions(), **extra).next() is None


def test_options_defaults() -> None:
    options = EtagOptions()
    assert options.enabled is True
    assert options.validator_header == "ETag"
    assert options.conditional_header == "If-None-Match"
    assert options.etag_on_not_modified is True


@pytest.mark.parametrize(
    "environ, enabled",
    [
        ({}, True),
        ({"DEEPETAG_ENABLED": "true"}, True),
        ({"DEEPETAG_ENABLED": ""}, True),
        ({"DEEPETAG_ENABLED": "false"}, False),
        ({"DEEPETAG_ENABLED": "OFF"}, False),
        ({"DEEPETAG_ENABLED": "0"}, False),
    ],
)
def test_options_from_env(environ: dict[str, str], enabled: bool) -> None:
    assert EtagOptions.from_env(environ).enabled is enabled


def test_options_from_process_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEEPETAG_ENABLED", "no")
    assert EtagOptions.from_env().enabled is False


def test_conditional_header_lookup_is_case_insensitive() -> None:
    context = RequestContext(headers=Headers({"if-none-match": '"v-7"'}))
    assert context.headers.get("If-None-Match") == '"v-7"'
