from __future__ import annotations

from typing import Any

import httpx
import pytest
from fastapi import FastAPI, Query
from fastapi.responses import PlainTextResponse
from inline_snapshot import snapshot

from deepetag import EtagOptions, ProviderRegistry, VersionProvider
from deepetag.fastapi import deep_etag


class DemoProvider(VersionProvider):
    def get_version(self, key: Any) -> str | None:
        return f"version-of-{key}"


class QueryProvider(VersionProvider):
    def get_version(self, key: Any) -> str | None:
        return f"v-{key}"


class UnregisteredProvider(VersionProvider):
    def get_version(self, key: Any) -> str | None:
        return "never"


def create_app() -> tuple[FastAPI, dict[str, int]]:
    app = FastAPI()
    app.state.etag_registry = ProviderRegistry([DemoProvider(), QueryProvider()])
    counter = {"demo": 0, "query": 0, "sync": 0, "custom": 0, "unregistered": 0, "disabled": 0}

    @app.get("/demo/{id}")
    @deep_etag(provider=DemoProvider, key="#id")
    async def get_demo(id: str) -> str:
        counter["demo"] += 1
        return f"Hello {id}"

    @app.get("/api/query")
    @deep_etag(provider=QueryProvider, key="#id")
    async def get_query(item_id: str = Query(alias="id")) -> str:
        counter["query"] += 1
        return f"Item {item_id}"

    @app.get("/sync/{id}")
    @deep_etag(provider=DemoProvider, key="#id")
    def get_sync(id: str) -> str:
        counter["sync"] += 1
        return f"Hello {id}"

    @app.get("/custom/{id}")
    @deep_etag(provider=DemoProvider, key="#id")
    async def get_custom(id: str) -> PlainTextResponse:
        counter["custom"] += 1
        return PlainTextResponse(f"Hello {id}", headers={"X-Custom": "yes"})

    @app.get("/unregistered/{id}")
    @deep_etag(provider=UnregisteredProvider, key="#id")
    async def get_unregistered(id: str) -> str:
        counter["unregistered"] += 1
        return f"Hello {id}"

    @app.get("/disabled/{id}")
    @deep_etag(provider=DemoProvider, key="#id", options=EtagOptions(enabled=False))
    async def get_disabled(id: str) -> str:
        counter["disabled"] += 1
        return f"Hello {id}"

    return app, counter


def create_client(app: FastAPI) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


@pytest.mark.anyio
async def test_response_is_stamped() -> None:
    app, counter = create_app()

    async with create_client(app) as client:
        response = await client.get("/demo/7")

    assert response.status_code == 200
    assert response.headers["etag"] == '"version-of-7"'
    assert response.json() == "Hello 7"
    assert counter["demo"] == 1


@pytest.mark.anyio
async def test_not_modified() -> None:
    app, counter = create_app()

    async with create_client(app) as client:
        response = await client.get("/demo/7", headers={"If-None-Match": '"version-of-7"'})

    assert response.status_code == 304
    assert response.content == b""
    assert response.headers["etag"] == '"version-of-7"'
    assert "content-length" not in response.headers
    assert counter["demo"] == 0


@pytest.mark.anyio
async def test_stale_validator() -> None:
    app, counter = create_app()

    async with create_client(app) as client:
        response = await client.get("/demo/7", headers={"If-None-Match": '"version-of-6"'})

    assert response.status_code == 200
    assert response.headers["etag"] == '"version-of-7"'
    assert counter["demo"] == 1


@pytest.mark.anyio
async def test_query_parameter_alias() -> None:
    app, counter = create_app()

    async with create_client(app) as client:
        first = await client.get("/api/query", params={"id": "456"})
        second = await client.get("/api/query", params={"id": "456"}, headers={"If-None-Match": '"v-456"'})

    assert first.status_code == 200
    assert first.headers["etag"] == '"v-456"'
    assert first.json() == "Item 456"
    assert second.status_code == 304
    assert counter["query"] == 1


@pytest.mark.anyio
async def test_sync_endpoint() -> None:
    app, counter = create_app()

    async with create_client(app) as client:
        first = await client.get("/sync/9")
        second = await client.get("/sync/9", headers={"If-None-Match": first.headers["etag"]})

    assert first.status_code == 200
    assert first.headers["etag"] == '"version-of-9"'
    assert second.status_code == 304
    assert second.headers["etag"] == '"version-of-9"'
    assert counter["sync"] == 1


@pytest.mark.anyio
async def test_endpoint_returning_response() -> None:
    app, counter = create_app()

    async with create_client(app) as client:
        response = await client.get("/custom/7")

    assert response.status_code == 200
    assert response.text == "Hello 7"
    assert response.headers["etag"] == '"version-of-7"'
    assert response.headers["x-custom"] == "yes"
    assert counter["custom"] == 1


@pytest.mark.anyio
async def test_unregistered_provider() -> None:
    app, counter = create_app()

    async with create_client(app) as client:
        response = await client.get("/unregistered/7", headers={"If-None-Match": '"never"'})

    assert response.status_code == 200
    assert "etag" not in response.headers
    assert response.json() == "Hello 7"
    assert counter["unregistered"] == 1


@pytest.mark.anyio
async def test_disabled() -> None:
    app, counter = create_app()

    async with create_client(app) as client:
        response = await client.get("/disabled/7", headers={"If-None-Match": '"version-of-7"'})

    assert response.status_code == 200
    assert "etag" not in response.headers
    assert counter["disabled"] == 1


@pytest.mark.anyio
async def test_explicit_registry_wins() -> None:
    app = FastAPI()
    app.state.etag_registry = ProviderRegistry()
    registry = ProviderRegistry([DemoProvider()])

    @app.get("/demo/{id}")
    @deep_etag(provider=DemoProvider, key="#id", registry=registry)
    async def get_demo(id: str) -> str:
        return f"Hello {id}"

    async with create_client(app) as client:
        response = await client.get("/demo/3")

    assert response.headers["etag"] == '"version-of-3"'


@pytest.mark.anyio
async def test_provider_instance_without_registry() -> None:
    app = FastAPI()

    @app.get("/demo/{id}")
    @deep_etag(provider=DemoProvider(), key="#id")
    async def get_demo(id: str) -> str:
        return f"Hello {id}"

    async with create_client(app) as client:
        response = await client.get("/demo/3")

    assert response.headers["etag"] == '"version-of-3"'


def test_injected_parameters_are_hidden_from_openapi() -> None:
    app, _ = create_app()

    parameters = app.openapi()["paths"]["/api/query"]["get"]["parameters"]

    assert [parameter["name"] for parameter in parameters] == ["id"]


def test_decoration_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("DEBUG", logger="deepetag.fastapi"):

        @deep_etag(provider=DemoProvider, key="#id")
        async def get_demo(id: str) -> str:
            return f"Hello {id}"

    assert caplog.messages == snapshot(
        ["Enabled ETag handling for endpoint test_decoration_is_logged.<locals>.get_demo with key '#id'"]
    )
