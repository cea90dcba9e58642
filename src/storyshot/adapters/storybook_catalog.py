"""Storybook story index adapter (httpx).

Fetches ``index.json`` from a running Storybook. Failures are mapped onto the
core error types; retries are left to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

import httpx

from storyshot.core.defaults import DEFAULT_CATALOG_TIMEOUT
from storyshot.core.errors import CatalogFetchError, CatalogTimeoutError

LOGGER = logging.getLogger(__name__)


class StorybookCatalog:
    """Async client for the Storybook story index.

    A client may be injected (tests use ``httpx.MockTransport``); otherwise a
    short-lived ``httpx.AsyncClient`` is created per fetch.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_CATALOG_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.timeout = timeout
        self._client = client

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            response = await self._client.get(url, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url)
        response.raise_for_status()
        return response

    async def fetch_index(self, url: str) -> Mapping[str, Any]:
        """GET the index document at ``url``.

        Raises:
            CatalogTimeoutError: the whole request, body included, took longer
                than ``timeout`` seconds.
            CatalogFetchError: network failure, non-2xx status or invalid JSON.
        """

        LOGGER.debug("Fetching story index from %s", url)
        try:
            # httpx timeouts apply per operation; the deadline covers the whole fetch.
            response = await asyncio.wait_for(self._get(url), self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            LOGGER.warning("Storybook index timed out at %s", url)
            raise CatalogTimeoutError(url, self.timeout) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise CatalogFetchError(
                url,
                f"{status} {exc.response.reason_phrase}".strip(),
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise CatalogFetchError(url, str(exc) or type(exc).__name__) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogFetchError(url, "response is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise CatalogFetchError(url, "response is not a JSON object")
        return payload
