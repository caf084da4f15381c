from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from movers.common.utils import json_ok
from movers.config.settings import Settings, get_settings
from movers.db.dependencies import get_session
from movers.payments.constants import SIGNATURE_HEADER
from movers.payments.services import apply_payment_event, authenticate_webhook

webhooks_router = APIRouter()


@webhooks_router.post("/razorpay-webhook")
async def razorpay_webhook(request: Request, session: AsyncSession = Depends(get_session),
                           settings: Settings = Depends(get_settings)):
    # signature covers the exact bytes received, so read the body raw
    body = await request.body()
    payload = authenticate_webhook(settings, body, request.headers.get(SIGNATURE_HEADER))

    await apply_payment_event(session, payload)
    return json_ok({"received": True})
