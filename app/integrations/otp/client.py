from __future__ import annotations

from typing import Any, Dict

import httpx

from app.config.settings import OTP_API_BASE_URL, OTP_TIMEOUT_SECONDS
from app.core.exceptions import OtpProviderUnavailableError, OtpRejectedError


class OtpApiClient:
    """
    HTTP client for the checkout OTP provider.

    - Network failures and 5xx answers raise OtpProviderUnavailableError
      (the checkout switches to fallback mode).
    - 4xx answers raise OtpRejectedError carrying the provider's `message`.
    """

    def __init__(
        self,
        *,
        base_url: str = OTP_API_BASE_URL,
        timeout: float = OTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def _post(self, path: str, payload: Dict[str, Any], default_message: str) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.post(path, json=payload)
        except httpx.HTTPError as e:
            raise OtpProviderUnavailableError(f"OTP provider unreachable: {e}") from e

        if resp.status_code >= 500:
            raise OtpProviderUnavailableError(f"OTP provider answered {resp.status_code}")

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if resp.status_code >= 400:
            raise OtpRejectedError(body.get("message") or default_message)
        return body

    async def send_checkout_otp(self, phone: str) -> Dict[str, Any]:
        return await self._post(
            "/customer/send-checkout-otp/",
            {"phone": phone},
            "Could not send the verification code. Please try again.",
        )

    async def verify_checkout_otp(self, phone: str, otp: str) -> Dict[str, Any]:
        return await self._post(
            "/customer/verify-checkout-otp/",
            {"phone": phone, "otp": otp},
            "Invalid OTP. Please try again.",
        )
