from sqlalchemy.ext.asyncio import AsyncSession
from movers.common.custom_exceptions import AppError, ConfigurationError, NotFound, ValidationFailed
from movers.config.settings import Settings
from movers.gateways.mailer import SmtpMailer
from movers.mail.constants import DEFAULT_QUOTE_SOURCE, QUOTE_PHONE_DIGITS, SMTP_REQUIRED, logger, templates
from movers.mail.models import QuoteRequestIn
from movers.mail.repository import create_quote_request, get_quote_request, get_vehicle_name
from movers.mail.utils import format_inr, round_money
from movers.notifications.repository import get_booking, get_user
from movers.otp.utils import digits_only


def _require_smtp(settings: Settings, *extra: str) -> None:
    if settings.smtp_missing(extra):
        raise ConfigurationError("SMTP env missing", extra={"required": SMTP_REQUIRED + list(extra)})


def _strip(value) -> str:
    return str(value or "").strip()


async def send_quote_request(session: AsyncSession, mailer: SmtpMailer, settings: Settings,
                             body: QuoteRequestIn) -> dict:
    """
    Mail a quote request to the admin inbox.

    With ``quote_id`` an existing request is re-sent, otherwise the form fields
    create a new request first.
    """
    quote_id = _strip(body.quote_id)
    fields = body.fields()
    name = _strip(fields.name)
    phone = digits_only(fields.phone or "")

    if not quote_id:
        if not name or not phone:
            raise ValidationFailed("name and phone required")
        if len(phone) != QUOTE_PHONE_DIGITS:
            raise ValidationFailed(f"phone must be exactly {QUOTE_PHONE_DIGITS} digits")

    _require_smtp(settings, "ADMIN_EMAIL")

    if quote_id:
        quote = await get_quote_request(session, quote_id)
        if quote is None:
            raise NotFound("Quote request not found")
    else:
        quote = await create_quote_request(
            session,
            name=name,
            phone=phone,
            email=_strip(fields.email) or None,
            service=_strip(fields.service) or None,
            message=_strip(fields.message) or None,
            source=_strip(fields.source) or DEFAULT_QUOTE_SOURCE,
        )
        await session.commit()
        logger.info("quote.created", extra={"quote_id": quote.id, "source": quote.source})

    created_at = quote.created_at.isoformat() if quote.created_at else None
    html = templates.get_template("quote_request.html.jinja").render(quote=quote, created_at=created_at)
    text = (
        f"New Quote Request\nName: {quote.name or '-'}\nPhone: {quote.phone or '-'}\n"
        f"Email: {quote.email or '-'}\nService: {quote.service or '-'}\nMessage: {quote.message or '-'}"
    )

    await mailer.send(settings.ADMIN_EMAIL, f"New Quote Request - {quote.id}", text, html)
    return {"sent": True, "quote_id": quote.id}


def bill_amounts(estimated_price, advance_amount) -> dict:
    total = round_money(estimated_price)
    advance = round_money(advance_amount)
    remaining = max(total - advance, 0)
    return {"total": total, "advance": advance, "remaining": remaining}


async def send_booking_bill(session: AsyncSession, mailer: SmtpMailer, settings: Settings, booking_id) -> dict:
    booking_id = _strip(booking_id)
    if not booking_id:
        raise ValidationFailed("booking_id required")

    booking = await get_booking(session, booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    if not booking.user_id:
        raise AppError("Booking missing user_id")

    user = await get_user(session, booking.user_id)
    if user is None or not user.email:
        raise NotFound("User email not found")

    vehicle_name = await get_vehicle_name(session, booking.vehicle_type_id)

    _require_smtp(settings)

    amounts = bill_amounts(booking.estimated_price, booking.advance_amount)
    total, advance, remaining = (format_inr(amounts[k]) for k in ("total", "advance", "remaining"))

    html = templates.get_template("booking_bill.html.jinja").render(
        booking=booking,
        customer_name=user.name or "Customer",
        vehicle_name=vehicle_name,
        total=total,
        advance=advance,
        remaining=remaining,
    )
    text = f"Booking confirmed. Total: {total}. Advance: {advance}. Remaining: {remaining}."

    await mailer.send(user.email, f"Booking Confirmed - {booking.id}", text, html)
    logger.info("bill.sent", extra={"booking_id": booking.id, **amounts})
    return {"sent": True}
