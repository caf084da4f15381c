from typing import Any, Dict, Optional
import httpx
from fastapi import Depends
from movers.common.custom_exceptions import UpstreamError
from movers.config.settings import Settings, get_settings
from movers.gateways.constants import EXPO_PUSH_URL, logger


def _push_error(resp: httpx.Response, data: Any) -> str:
    if isinstance(data, dict):
        errors = data.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict) and errors[0].get("message"):
            return str(errors[0]["message"])
        if data.get("error"):
            return str(data["error"])
        ticket = data.get("data")
        if isinstance(ticket, dict) and ticket.get("message"):
            return str(ticket["message"])
    return resp.text or "Expo push failed"


class ExpoPushClient:
    """Delivers one notification per call through the Expo push service."""

    def __init__(self, timeout: float, url: str = EXPO_PUSH_URL,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExpoPushClient":
        return cls(timeout=settings.GATEWAY_TIMEOUT_SECONDS)

    async def send(self, to: str, title: str, body: str, data: Dict[str, Any]) -> dict:
        message = {
            "to": to,
            "title": title,
            "body": body,
            "data": data,
            "sound": "default",
            "priority": "high",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.url, json=message,
                                         headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            raise UpstreamError("Expo push failed") from exc

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if resp.is_error:
            raise UpstreamError(_push_error(resp, payload))

        # a 200 can still carry a per-message error ticket
        ticket = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(ticket, dict) or ticket.get("status") != "ok":
            raise UpstreamError(_push_error(resp, payload))

        return ticket


def get_push_client(settings: Settings = Depends(get_settings)) -> ExpoPushClient:
    return ExpoPushClient.from_settings(settings)
