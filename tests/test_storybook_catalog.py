from __future__ import annotations

import asyncio
import time

import httpx
import pytest

from storyshot.adapters.storybook_catalog import StorybookCatalog
from storyshot.core.errors import CatalogFetchError, CatalogTimeoutError

URL = "http://localhost:6006/index.json"


def _fetch(handler, timeout: float = 5.0):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await StorybookCatalog(timeout=timeout, client=client).fetch_index(URL)

    return asyncio.run(run())


def test_fetch_index_returns_document() -> None:
    payload = {"v": 5, "entries": {"button--primary": {"id": "button--primary", "type": "story"}}}

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == URL
        return httpx.Response(200, json=payload)

    assert _fetch(handler) == payload


def test_http_error_status_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(CatalogFetchError) as excinfo:
        _fetch(handler)

    assert excinfo.value.status_code == 500
    assert URL in str(excinfo.value)


def test_timeout_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(CatalogTimeoutError) as excinfo:
        _fetch(handler, timeout=2.5)

    assert excinfo.value.timeout == 2.5
    assert "2.5s" in str(excinfo.value)


def test_slow_body_hits_total_deadline() -> None:
    body = b'{"v": 5, "entries": {}}'

    async def trickle():
        for byte in body:
            await asyncio.sleep(0.1)
            yield bytes([byte])

    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=trickle())

    started = time.monotonic()
    with pytest.raises(CatalogTimeoutError):
        _fetch(handler, timeout=0.5)

    assert time.monotonic() - started < 1.5


def test_connection_error_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(CatalogFetchError) as excinfo:
        _fetch(handler)

    assert not isinstance(excinfo.value, CatalogTimeoutError)
    assert excinfo.value.status_code is None


def test_invalid_json_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>not json</html>")

    with pytest.raises(CatalogFetchError, match="not valid JSON"):
        _fetch(handler)


def test_non_object_json_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["button--primary"])

    with pytest.raises(CatalogFetchError, match="not a JSON object"):
        _fetch(handler)
