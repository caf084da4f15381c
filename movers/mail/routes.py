from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from movers.common.utils import json_ok
from movers.config.settings import Settings, get_settings
from movers.db.dependencies import get_session
from movers.gateways.mailer import SmtpMailer, get_mailer
from movers.mail.models import BookingBillIn, QuoteRequestIn
from movers.mail.services import send_booking_bill, send_quote_request

mail_router = APIRouter()


@mail_router.post("/send-quote-request")
async def quote_request(payload: QuoteRequestIn, session: AsyncSession = Depends(get_session),
                        settings: Settings = Depends(get_settings), mailer: SmtpMailer = Depends(get_mailer)):

    resp = await send_quote_request(session, mailer, settings, payload)
    return json_ok(resp)


@mail_router.post("/send-booking-bill")
async def booking_bill(payload: BookingBillIn, session: AsyncSession = Depends(get_session),
                       settings: Settings = Depends(get_settings), mailer: SmtpMailer = Depends(get_mailer)):

    resp = await send_booking_bill(session, mailer, settings, payload.booking_id)
    return json_ok(resp)
