from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from movers.common.custom_exceptions import AppError
from movers.common.utils import json_ok
from movers.config.settings import Settings, get_settings
from movers.db.dependencies import get_session
from movers.gateways.sms import TwilioSmsClient, get_sms_client
from movers.otp.models import SendOtpIn, VerifyOtpIn
from movers.otp.services import issue_booking_otp, verify_booking_otp
from movers.rate_limiting.dependencies import otp_send_rate_limit

otp_router = APIRouter()


@otp_router.post("/send-booking-otp", dependencies=[Depends(otp_send_rate_limit)])
async def send_booking_otp(payload: SendOtpIn, session: AsyncSession = Depends(get_session),
                           settings: Settings = Depends(get_settings),
                           sms_client: TwilioSmsClient = Depends(get_sms_client)):

    resp = await issue_booking_otp(session, payload.phone or "", settings, sms_client)
    return json_ok(resp)


@otp_router.post("/verify-booking-otp")
async def verify_booking_otp_route(payload: VerifyOtpIn, session: AsyncSession = Depends(get_session),
                                   settings: Settings = Depends(get_settings)):
    try:
        resp = await verify_booking_otp(session, payload.phone or "", payload.code or "", settings)
    except AppError as exc:
        # every verification failure carries valid=false
        exc.extra.setdefault("valid", False)
        raise
    return json_ok(resp)
