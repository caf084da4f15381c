from fastapi import APIRouter, Depends
from movers.common.utils import json_ok
from movers.config.settings import Settings, get_settings
from movers.gateways.razorpay import RazorpayClient, get_razorpay_client
from movers.payments.models import CreateOrderIn, VerifyPaymentIn
from movers.payments.services import create_payment_order, verify_payment_signature

payments_router = APIRouter()


@payments_router.post("/razorpay-order")
async def razorpay_order(payload: CreateOrderIn, settings: Settings = Depends(get_settings),
                         client: RazorpayClient = Depends(get_razorpay_client)):

    data = await create_payment_order(client, settings, payload.amount, payload.currency,
                                      payload.receipt, payload.booking_id)
    return json_ok(data)


@payments_router.post("/razorpay-verify")
async def razorpay_verify(payload: VerifyPaymentIn, settings: Settings = Depends(get_settings)):
    resp = verify_payment_signature(settings, payload.order_id, payload.payment_id, payload.signature)
    return json_ok(resp)
