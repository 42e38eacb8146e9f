"""HTTP client for the shipment/dispatch backend."""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import httpx

from ...config import settings

logger = logging.getLogger(__name__)


class DispatchClient:
    """Reads rider routes and orders from the dispatch backend and forwards rider actions."""

    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.dispatch_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("Dispatch base URL is not configured.")
        self.api_token = api_token if api_token is not None else settings.dispatch_api_token
        self.timeout = timeout if timeout is not None else settings.dispatch_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.dispatch_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.dispatch_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        """Create a client per call; fetches run on worker threads."""
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(self.timeout, connect=5.0),
            transport=self._transport,
        )

    def _request(self, method: str, path: str, *, retry: bool = True, **kwargs: Any) -> dict:
        """Send one request; ``retry=False`` for calls the backend must not apply twice."""
        client = self._get_client()
        max_retries = self.max_retries if retry else 0
        try:
            attempt = 0
            while True:
                try:
                    response = client.request(method, path, **kwargs)
                    response.raise_for_status()
                    data = response.json()
                    if not isinstance(data, dict):
                        raise ValueError(f"Dispatch response for {path} is not a JSON object.")
                    return data
                except httpx.HTTPStatusError as e:
                    # Client errors will not succeed on retry.
                    if e.response.status_code < 500:
                        raise
                    attempt += 1
                    if attempt > max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > max_retries:
                        logger.warning(f"Dispatch request {path} timed out after {max_retries} retries: {e}")
                        raise ConnectionError(f"Dispatch request {path} timed out: {e}") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Dispatch timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{max_retries})")
                    time.sleep(wait_time)
                except (httpx.ConnectError, httpx.NetworkError, OSError) as e:
                    attempt += 1
                    if attempt > max_retries:
                        raise ConnectionError(
                            f"Failed to connect to dispatch service at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Dispatch network error, retrying in {wait_time:.1f}s (attempt {attempt}/{max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()

    @staticmethod
    def _unwrap(payload: dict, key: str) -> list:
        # Responses come either bare or wrapped as {"success": ..., "data": {...}}.
        body = payload.get("data") if isinstance(payload.get("data"), dict) else payload
        items = body.get(key) or []
        if not isinstance(items, list):
            raise ValueError(f"Dispatch field '{key}' is not a list.")
        return items

    def get_routes(self, rider_id: str, statuses: Sequence[str] | None = None) -> list[dict]:
        """Route assignments for ``rider_id`` restricted to ``statuses``."""
        statuses = tuple(statuses or settings.assignable_statuses)
        params = {"riderId": rider_id, "status": ",".join(statuses)}
        return self._unwrap(self._request("GET", "/rider/routes", params=params), "routes")

    def get_active_orders(self, rider_id: str) -> list[dict]:
        """The rider's unresolved orders."""
        params = {"riderId": rider_id}
        return self._unwrap(self._request("GET", "/rider/active-orders", params=params), "orders")

    def start_route(self, rider_id: str, route_id: str) -> dict:
        return self._request("POST", "/rider/start-route", json={"riderId": rider_id, "routeId": route_id}, retry=False)

    def complete_delivery(
        self,
        rider_id: str,
        shipment_id: str,
        cod_amount: float | None = None,
        notes: str | None = None,
    ) -> dict:
        body: dict[str, Any] = {"riderId": rider_id, "shipmentId": shipment_id}
        if cod_amount is not None:
            body["codAmount"] = cod_amount
        if notes:
            body["notes"] = notes
        return self._request("POST", "/rider/complete-delivery", retry=False, json=body)


def check_health(base_url: str | None = None) -> bool:
    """Check that the dispatch backend answers on its health endpoint."""
    base = base_url or settings.dispatch_base_url
    if not base:
        return False
    try:
        response = httpx.get(f"{base.rstrip('/')}/health", timeout=5.0)
        response.raise_for_status()
        return True
    except httpx.HTTPError:
        return False
