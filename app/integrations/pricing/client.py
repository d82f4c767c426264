from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

import httpx

from app.config.settings import PRICING_API_BASE_URL, PRICING_TIMEOUT_SECONDS
from app.core.exceptions import PricingUnavailableError


class PricingApiClient:
    """HTTP client for the external pricing API (cart calculation and delivery estimate)."""

    def __init__(
        self,
        *,
        base_url: str = PRICING_API_BASE_URL,
        timeout: float = PRICING_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        """
        Returns the `data` object of a `{success: true, data: {...}}` answer.

        Anything else (network error, non-2xx status, body that is not JSON,
        `success` not true) is reported as PricingUnavailableError.
        """
        try:
            async with self._client() as client:
                resp = await client.request(method, path, **kwargs)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPError as e:
            raise PricingUnavailableError(f"Pricing API request failed: {e}") from e
        except ValueError as e:
            raise PricingUnavailableError("Pricing API returned an invalid body") from e

        if not isinstance(body, dict) or body.get("success") is not True:
            raise PricingUnavailableError("Pricing API returned an unsuccessful response")

        data = body.get("data")
        if not isinstance(data, dict):
            raise PricingUnavailableError("Pricing API response has no data")
        return data

    async def calculate_cart(
        self,
        *,
        subtotal: Decimal,
        delivery_address: Dict[str, Any] | None = None,
        restaurant_id: str | None = None,
        address_id: int | None = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"subtotal": float(subtotal)}
        if delivery_address:
            payload["deliveryAddress"] = delivery_address
        if restaurant_id:
            payload["restaurantId"] = restaurant_id
        if address_id is not None:
            payload["addressId"] = address_id

        return await self._request("POST", "/cart/calculate", json=payload)

    async def delivery_estimate(self, *, address_id: int, restaurant_id: str | None = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"addressId": address_id}
        if restaurant_id:
            params["restaurantId"] = restaurant_id
        return await self._request("GET", "/delivery/estimate", params=params)
