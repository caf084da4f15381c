import json
import math
import time
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from movers.common.custom_exceptions import ConfigurationError, Unauthorized, ValidationFailed
from movers.common.signatures import verify_hmac_sha256
from movers.config.settings import Settings
from movers.gateways.razorpay import RazorpayClient
from movers.payments.constants import DEFAULT_CURRENCY, RAZORPAY_KEYS, logger
from movers.payments.repository import set_booking_payment_status, upsert_payment
from movers.schema.full_schema import PaymentStatus


def parse_amount_paise(raw: Any) -> int:
    """Amount in paise: a positive whole number, given as number or numeric string."""
    if raw is None or isinstance(raw, bool):
        raise ValidationFailed("Amount required")
    try:
        amount = float(str(raw).strip())
    except ValueError:
        raise ValidationFailed("Amount required")
    if not math.isfinite(amount) or amount <= 0 or amount != int(amount):
        raise ValidationFailed("Amount required")
    return int(amount)


async def create_payment_order(client: RazorpayClient, settings: Settings, raw_amount: Any,
                               currency: Optional[str] = None, receipt: Optional[str] = None,
                               booking_id: Optional[str] = None) -> dict:
    if settings.missing(RAZORPAY_KEYS):
        raise ConfigurationError("Razorpay keys missing")

    amount = parse_amount_paise(raw_amount)
    receipt = receipt or f"rcpt_{int(time.time() * 1000)}"
    notes = {"booking_id": booking_id} if booking_id else None

    return await client.create_order(amount, currency or DEFAULT_CURRENCY, receipt, notes)


def verify_payment_signature(settings: Settings, order_id: Optional[str], payment_id: Optional[str],
                             signature: Optional[str]) -> dict:
    if not order_id or not payment_id or not signature:
        raise ValidationFailed("Missing fields", extra={"valid": False})

    secret = settings.RAZORPAY_KEY_SECRET
    if not secret:
        raise ConfigurationError("Secret missing", extra={"valid": False})

    valid = verify_hmac_sha256(f"{order_id}|{payment_id}", signature, secret)
    logger.info("razorpay.verify.checked", extra={"razorpay_order_id": order_id, "valid": valid})
    return {"valid": valid}


def authenticate_webhook(settings: Settings, body: bytes, signature: Optional[str]) -> dict:
    """Check the signature over the raw body before anything is parsed or written."""
    secret = settings.RAZORPAY_WEBHOOK_SECRET
    if not secret:
        raise ConfigurationError("Webhook secret missing")

    if not verify_hmac_sha256(body, signature, secret):
        logger.warning("razorpay.webhook.invalid_signature", extra={"has_signature": bool(signature)})
        raise Unauthorized("Invalid signature")

    try:
        payload = json.loads(body)
    except ValueError:
        raise ValidationFailed("Invalid payload")
    if not isinstance(payload, dict):
        raise ValidationFailed("Invalid payload")
    return payload


def _payment_entity(payload: dict) -> dict:
    entity = ((payload.get("payload") or {}).get("payment") or {}).get("entity")
    return entity if isinstance(entity, dict) else {}


async def apply_payment_event(session: AsyncSession, payload: dict) -> bool:
    """
    Record the payment entity of a verified webhook event.
    Returns False when the event carries no order id (nothing is written).
    """
    entity = _payment_entity(payload)
    order_id = entity.get("order_id")
    if not order_id:
        logger.info("razorpay.webhook.ignored", extra={"event": payload.get("event"), "reason": "no order id"})
        return False

    gateway_status = entity.get("status")
    raw_amount = entity.get("amount")
    amount = raw_amount / 100 if isinstance(raw_amount, (int, float)) and raw_amount else None
    notes = entity.get("notes") if isinstance(entity.get("notes"), dict) else {}
    booking_id = notes.get("booking_id") or None

    await upsert_payment(session, order_id, entity.get("id"), gateway_status, amount, booking_id)

    if booking_id:
        payment_status = PaymentStatus.from_gateway(gateway_status)
        updated = await set_booking_payment_status(session, booking_id, payment_status.value)
        if not updated:
            logger.warning("razorpay.webhook.booking_missing", extra={"booking_id": booking_id})

    await session.commit()
    logger.info(
        "razorpay.webhook.applied",
        extra={"event": payload.get("event"), "razorpay_order_id": order_id, "status": gateway_status,
               "booking_id": booking_id},
    )
    return True
