import json
import logging
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from src.core.flows.errors import GatewayNetworkError, SessionExpiredError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://app.gobeller.com/api/v1"


class BankingApiError(Exception):
    """Remote call reached the server and was rejected (non-2xx or status=false)."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _parse_error_message(text: str) -> str:
    try:
        body = json.loads(text)
    except ValueError:
        return text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return text


class BankingApiClient:
    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        app_id: Optional[str] = None,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token = token
        self._app_id = app_id
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        if self._app_id:
            headers["AppID"] = self._app_id
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            response = await self._client.request(
                method, path, json=json_body, params=params, headers=self._headers()
            )
        except httpx.TimeoutException as exc:
            raise GatewayNetworkError("REQUEST_TIMEOUT", "The request timed out") from exc
        except httpx.TransportError as exc:
            raise GatewayNetworkError("NETWORK_UNAVAILABLE", "Network unavailable") from exc

        logger.info(
            "banking_api.response",
            extra={
                "extra_fields": {
                    "http_method": method,
                    "endpoint": path,
                    "status_code": response.status_code,
                    "latency_ms": round((time.perf_counter() - started) * 1000, 2),
                }
            },
        )
        if response.status_code == 401:
            self.clear_token()
            raise SessionExpiredError("SESSION_EXPIRED", "Session expired. Please login again.")
        if response.status_code >= 500:
            raise GatewayNetworkError(
                "UPSTREAM_UNAVAILABLE", _parse_error_message(response.text)
            )
        if not response.is_success:
            raise BankingApiError(response.status_code, _parse_error_message(response.text))

        try:
            body = json.loads(response.text, parse_float=Decimal)
        except ValueError as exc:
            raise BankingApiError(response.status_code, "INVALID_JSON_RESPONSE") from exc
        if not isinstance(body, dict):
            raise BankingApiError(response.status_code, "INVALID_JSON_RESPONSE")
        if body.get("status") is False:
            raise BankingApiError(
                response.status_code, str(body.get("message") or "REQUEST_REJECTED")
            )
        return body

    async def get_profile(self) -> Dict[str, Any]:
        body = await self.request("GET", "/profile")
        return body.get("data") or {}

    async def list_banks(self) -> List[Dict[str, Any]]:
        body = await self.request("GET", "/banks", params={"items_per_page": 300})
        return _page_items(body)

    async def list_data_bundles(self, network_provider: str) -> List[Dict[str, Any]]:
        body = await self.request("GET", f"/transactions/get-data-bundles/{network_provider}")
        return list(body.get("data") or [])

    async def get_meter_services(self) -> Dict[str, Any]:
        body = await self.request("GET", "/transactions/get-meter-services")
        return body.get("data") or {}

    async def list_cable_tv_plans(self, cable_tv_type: str) -> List[Dict[str, Any]]:
        body = await self.request(
            "GET", "/transactions/get-subscriptions", params={"cableTvType": cable_tv_type}
        )
        return list(body.get("data") or [])

    async def list_fixed_deposit_products(
        self, page: int = 1, items_per_page: int = 20
    ) -> List[Dict[str, Any]]:
        body = await self.request(
            "GET",
            "/fixed-deposit-mgt/fixed-deposit-products",
            params={"page": page, "items_per_page": items_per_page},
        )
        return _page_items(body)

    async def get_exchange_rates(self) -> Dict[str, Any]:
        body = await self.request("GET", "/currencies/exchange/rate")
        return body.get("data") or {}


def _page_items(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    data = body.get("data") or {}
    if isinstance(data, dict):
        return list(data.get("data") or [])
    return list(data)
