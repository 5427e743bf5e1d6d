"""HTTP client for interacting with GraphHopper services."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ...config import settings

logger = logging.getLogger(__name__)

# Status codes worth retrying; any other 4xx means the provider rejected the request itself.
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class GraphHopperClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        api_key: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.graphhopper_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("GraphHopper base URL is not configured.")
        self.profile = profile or settings.graphhopper_profile
        self.timeout = timeout if timeout is not None else settings.graphhopper_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.graphhopper_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.graphhopper_backoff_seconds
        )
        self.api_key = api_key if api_key is not None else settings.graphhopper_api_key
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        """Create a short-lived client; route queries run from several worker threads."""
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)),
            transport=self._transport,
        )

    def _params(self) -> dict[str, str]:
        return {"key": self.api_key} if self.api_key else {}

    def route(self, payload: dict[str, Any]) -> dict:
        """POST a route request and return the decoded GraphHopper response.

        Args:
            payload: JSON body for ``/route`` (points in lon/lat order, profile,
                custom_model, algorithm options, ...).

        Returns:
            The response JSON, guaranteed to contain a non-empty ``paths`` list.
        """
        body = {"profile": self.profile, **payload}
        data = self._request("POST", "/route", json=body)
        paths = data.get("paths")
        if not isinstance(paths, list) or not paths:
            raise ValueError(f"GraphHopper route response has no paths: {data.get('message', 'no message')}")
        return data

    def info(self) -> dict:
        return self._request("GET", "/info")

    def _request(self, method: str, path: str, *, json: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.request(method, url, params=self._params(), json=json)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError as e:
                    status_code = e.response.status_code
                    if status_code not in RETRYABLE_STATUS_CODES:
                        message = _error_message(e.response)
                        raise ValueError(
                            f"GraphHopper rejected {method} {path} ({status_code}): {message}"
                        ) from e
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    logger.debug(f"GraphHopper returned {status_code}, retrying (attempt {attempt}/{self.max_retries})")
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"GraphHopper request timed out after {self.max_retries} retries: {e}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"GraphHopper timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.ConnectError, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"Failed to connect to GraphHopper service at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"GraphHopper network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("message") or data)
    return str(data)


def check_health(base_url: str | None = None, transport: httpx.BaseTransport | None = None) -> bool:
    """Check GraphHopper availability through its ``/info`` endpoint."""
    try:
        client = GraphHopperClient(base_url=base_url, max_retries=0, timeout=5.0, transport=transport)
        data = client.info()
    except (httpx.HTTPError, ValueError, ConnectionError):
        return False
    return isinstance(data, dict) and ("version" in data or "profiles" in data or "bbox" in data)
