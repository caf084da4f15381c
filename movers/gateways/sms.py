from typing import Optional
import httpx
from fastapi import Depends
from movers.common.custom_exceptions import UpstreamError
from movers.config.settings import Settings, get_settings
from movers.gateways.constants import logger

TWILIO_SETTINGS = ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_FROM_PHONE")


class TwilioSmsClient:
    """Sends SMS through the Twilio Messages REST API."""

    def __init__(self, account_sid: str, auth_token: str, from_phone: str,
                 api_base: str, timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_phone = from_phone
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "TwilioSmsClient":
        return cls(
            account_sid=settings.TWILIO_ACCOUNT_SID or "",
            auth_token=settings.TWILIO_AUTH_TOKEN or "",
            from_phone=settings.TWILIO_FROM_PHONE or "",
            api_base=settings.TWILIO_API_BASE,
            timeout=settings.GATEWAY_TIMEOUT_SECONDS,
        )

    async def send(self, to: str, body: str) -> dict:
        url = f"{self.api_base}/Accounts/{self.account_sid}/Messages.json"
        form = {"To": to, "From": self.from_phone, "Body": body}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, auth=(self.account_sid, self.auth_token),
                                         transport=self._transport) as client:
                resp = await client.post(url, data=form)
        except httpx.HTTPError as exc:
            logger.error("sms.send.transport_error", extra={"to": to, "error_type": type(exc).__name__})
            raise UpstreamError("Twilio SMS failed") from exc

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if resp.is_error:
            logger.error("sms.send.rejected", extra={"to": to, "status_code": resp.status_code})
            raise UpstreamError(data.get("message") or "Twilio SMS failed")

        logger.info("sms.send.accepted", extra={"to": to, "sid": data.get("sid")})
        return data


def get_sms_client(settings: Settings = Depends(get_settings)) -> TwilioSmsClient:
    return TwilioSmsClient.from_settings(settings)
