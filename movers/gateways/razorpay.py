from typing import Optional
import httpx
from fastapi import Depends
from movers.common.custom_exceptions import UpstreamError
from movers.config.settings import Settings, get_settings
from movers.gateways.constants import logger


class RazorpayClient:
    """Server side calls to the Razorpay orders API (basic auth with the key pair)."""

    def __init__(self, key_id: str, key_secret: str, api_base: str, timeout: float,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.key_id = key_id
        self.key_secret = key_secret
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "RazorpayClient":
        return cls(
            key_id=settings.RAZORPAY_KEY_ID or "",
            key_secret=settings.RAZORPAY_KEY_SECRET or "",
            api_base=settings.RZPAY_GATEWAY_URL,
            timeout=settings.GATEWAY_TIMEOUT_SECONDS,
        )

    async def create_order(self, amount_paise: int, currency: str, receipt: str,
                           notes: Optional[dict] = None) -> dict:
        """
        Create a gateway order and return the gateway's JSON unchanged.
        A rejected request keeps the gateway's HTTP status and error description.
        """
        url = f"{self.api_base}/orders"
        payload = {
            "amount": amount_paise,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        if notes:
            payload["notes"] = notes

        try:
            async with httpx.AsyncClient(timeout=self.timeout, auth=(self.key_id, self.key_secret),
                                         transport=self._transport) as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("razorpay.order.transport_error", extra={"error_type": type(exc).__name__})
            raise UpstreamError("Failed to create order") from exc

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if resp.is_error:
            error = data.get("error")
            if isinstance(error, dict):
                error = error.get("description") or error.get("code")
            logger.warning("razorpay.order.rejected", extra={"status_code": resp.status_code, "reason": error})
            raise UpstreamError(str(error or "Razorpay error"), status_code=resp.status_code)

        logger.info("razorpay.order.created", extra={"razorpay_order_id": data.get("id"), "receipt": receipt})
        return data


def get_razorpay_client(settings: Settings = Depends(get_settings)) -> RazorpayClient:
    return RazorpayClient.from_settings(settings)
