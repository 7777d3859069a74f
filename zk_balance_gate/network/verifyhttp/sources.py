"""Verification key source backed by an HTTP blob store."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx
import trio

from ...verification.config import KEY_FETCH_TIMEOUT, MAX_VK_BYTES
from ...verification.exceptions import KeySourceError
from ...verification.key_store import DEFAULT_KEY_NAMES
from .constants import DEFAULT_BUCKET, STORAGE_PATH

logger = logging.getLogger(__name__)


class HttpKeySource:
    """
    Fetches ``{base_url}/storage/v1/object/public/{bucket}/{name}``.

    A 404 means the key is not published (None). Any other failure is a
    KeySourceError.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        *,
        bucket: str = DEFAULT_BUCKET,
        names: Optional[Mapping[str, str]] = None,
        timeout: float = KEY_FETCH_TIMEOUT,
        max_bytes: int = MAX_VK_BYTES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._bucket = bucket
        self._names = dict(DEFAULT_KEY_NAMES if names is None else names)
        self._timeout = timeout
        self._max_bytes = max_bytes
        self._transport = transport

    def url_for(self, circuit_id: str) -> Optional[str]:
        name = self._names.get(circuit_id)
        if name is None:
            return None
        return f"{self._base_url}/{STORAGE_PATH}/{self._bucket}/{name}"

    async def fetch(self, circuit_id: str) -> Optional[Mapping[str, Any]]:
        url = self.url_for(circuit_id)
        if url is None:
            logger.debug("no blob name mapped for %s", circuit_id)
            return None

        try:
            with trio.fail_after(self._timeout):
                async with httpx.AsyncClient(
                    transport=self._transport, timeout=self._timeout
                ) as client:
                    response = await client.get(url)
        except trio.TooSlowError as exc:
            raise KeySourceError(f"GET {url} timed out") from exc
        except httpx.HTTPError as exc:
            raise KeySourceError(f"GET {url} failed: {exc}") from exc

        if response.status_code == 404:
            return None
        if not response.is_success:
            raise KeySourceError(f"GET {url} returned HTTP {response.status_code}")
        if len(response.content) > self._max_bytes:
            raise KeySourceError(f"{url} exceeds {self._max_bytes} bytes")
        try:
            return response.json()
        except ValueError as exc:
            raise KeySourceError(f"{url} is not JSON") from exc
