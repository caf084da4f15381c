import aiosmtplib
import pytest
from sqlalchemy import select
from movers.common.custom_exceptions import UpstreamError
from movers.gateways.mailer import SmtpMailer
from movers.mail.services import bill_amounts
from movers.mail.utils import format_inr, group_indian
from movers.schema.full_schema import QuoteRequest, VehicleType
from tests.helpers import seed_booking, seed_user, url_prefix


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "₹0"),
        (999, "₹999"),
        (1000, "₹1,000"),
        (123456, "₹1,23,456"),
        (12345678, "₹1,23,45,678"),
        (1499.5, "₹1,500"),
        (None, "₹0"),
    ],
)
def test_format_inr(value, expected):
    assert format_inr(value) == expected


def test_group_indian_negative():
    assert group_indian(-1234567) == "-12,34,567"


def test_bill_amounts_never_negative():
    assert bill_amounts(4999.6, 1000) == {"total": 5000, "advance": 1000, "remaining": 4000}
    assert bill_amounts(1000, 2500) == {"total": 1000, "advance": 2500, "remaining": 0}
    assert bill_amounts(None, None) == {"total": 0, "advance": 0, "remaining": 0}


@pytest.mark.asyncio
async def test_quote_request_is_stored_and_mailed_to_admin(ac_client, db_session, mailer):
    resp = await ac_client.post(f"{url_prefix}/send-quote-request", json={
        "name": "Ravi <b>Shah</b>", "phone": "98765 43210", "service": "Home shifting",
        "message": "2BHK, Ahmedabad to Surat",
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["sent"] is True

    quote = (await db_session.execute(select(QuoteRequest).where(QuoteRequest.id == body["quote_id"]))).scalar_one()
    assert quote.phone == "9876543210"
    assert quote.source == "app"
    assert quote.email is None

    assert len(mailer.sent) == 1
    mail = mailer.sent[0]
    assert mail["to"] == "ops@test.local"
    assert mail["subject"] == f"New Quote Request - {quote.id}"
    assert "Phone: 9876543210" in mail["text"]
    assert "&lt;b&gt;Shah&lt;/b&gt;" in mail["html"]


@pytest.mark.asyncio
async def test_quote_request_accepts_nested_payload(ac_client, mailer):
    resp = await ac_client.post(f"{url_prefix}/send-quote-request", json={
        "payload": {"name": "Ravi", "phone": "9876543210", "source": "website"},
    })
    assert resp.status_code == 200
    assert len(mailer.sent) == 1


@pytest.mark.asyncio
async def test_quote_request_resends_existing(ac_client, db_session, mailer):
    quote = QuoteRequest(name="Meera", phone="9876500000", source="app")
    db_session.add(quote)
    await db_session.commit()

    resp = await ac_client.post(f"{url_prefix}/send-quote-request", json={"quote_id": quote.id})
    assert resp.json() == {"sent": True, "quote_id": quote.id}

    missing = await ac_client.post(f"{url_prefix}/send-quote-request", json={"quote_id": "nope"})
    assert missing.status_code == 404
    assert missing.json() == {"error": "Quote request not found"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, error",
    [
        ({"phone": "9876543210"}, "name and phone required"),
        ({"name": "Ravi"}, "name and phone required"),
        ({"name": "Ravi", "phone": "987654321"}, "phone must be exactly 10 digits"),
        ({"name": "Ravi", "phone": "+91 98765 43210"}, "phone must be exactly 10 digits"),
    ],
)
async def test_quote_request_validation(ac_client, db_session, mailer, payload, error):
    resp = await ac_client.post(f"{url_prefix}/send-quote-request", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": error}
    assert (await db_session.execute(select(QuoteRequest))).first() is None
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_quote_request_needs_smtp_and_admin_email(ac_client, db_session, mailer, set_env):
    set_env(ADMIN_EMAIL=None)
    resp = await ac_client.post(f"{url_prefix}/send-quote-request", json={"name": "Ravi", "phone": "9876543210"})
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "SMTP env missing",
        "required": ["SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASS", "SMTP_FROM", "ADMIN_EMAIL"],
    }
    assert (await db_session.execute(select(QuoteRequest))).first() is None


@pytest.mark.asyncio
async def test_booking_bill(ac_client, db_session, mailer):
    vehicle = VehicleType(name="Tata Ace")
    db_session.add(vehicle)
    await db_session.commit()
    customer = await seed_user(db_session, name="Asha", email="asha@example.com")
    booking = await seed_booking(db_session, customer.id, estimated_price=123456.4, advance_amount=23456,
                                 vehicle_type_id=vehicle.id, pickup_address="Navrangpura",
                                 drop_address="Adajan", scheduled_date="2026-11-02", scheduled_time="09:30",
                                 labor_count=3)

    resp = await ac_client.post(f"{url_prefix}/send-booking-bill", json={"booking_id": booking.id})
    assert resp.status_code == 200
    assert resp.json() == {"sent": True}

    mail = mailer.sent[0]
    assert mail["to"] == "asha@example.com"
    assert mail["subject"] == f"Booking Confirmed - {booking.id}"
    assert mail["text"] == "Booking confirmed. Total: ₹1,23,456. Advance: ₹23,456. Remaining: ₹1,00,000."
    assert "Tata Ace" in mail["html"]
    assert "Hi Asha" in mail["html"]
    assert "2026-11-02 at 09:30" in mail["html"]


@pytest.mark.asyncio
async def test_booking_bill_errors(ac_client, db_session, mailer):
    resp = await ac_client.post(f"{url_prefix}/send-booking-bill", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "booking_id required"}

    resp = await ac_client.post(f"{url_prefix}/send-booking-bill", json={"booking_id": "missing"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Booking not found"}

    customer = await seed_user(db_session, email=None)
    booking = await seed_booking(db_session, customer.id)
    resp = await ac_client.post(f"{url_prefix}/send-booking-bill", json={"booking_id": booking.id})
    assert resp.status_code == 404
    assert resp.json() == {"error": "User email not found"}
    assert mailer.sent == []


def test_mailer_builds_named_sender():
    mailer = SmtpMailer("smtp.test.local", 587, "user", "pass", "bookings@test.local", "Packers & Movers")
    msg = mailer.build_message("asha@example.com", "Hello", "plain", "<p>html</p>")

    sender = msg["From"].addresses[0]
    assert sender.display_name == "Packers & Movers"
    assert sender.addr_spec == "bookings@test.local"
    assert msg["To"] == "asha@example.com"
    assert msg.is_multipart()


@pytest.mark.asyncio
async def test_mailer_relay_failure_is_upstream_error(monkeypatch):
    async def refuse(*args, **kwargs):
        raise aiosmtplib.SMTPException("relay refused")

    monkeypatch.setattr(aiosmtplib, "send", refuse)
    mailer = SmtpMailer("smtp.test.local", 587, "user", "pass", "bookings@test.local", "Packers & Movers")
    with pytest.raises(UpstreamError) as exc_info:
        await mailer.send("asha@example.com", "Hello", "plain")
    assert exc_info.value.message == "Failed to send email"


@pytest.mark.asyncio
async def test_mailer_tls_mode_follows_settings(monkeypatch):
    calls = []

    async def capture(message, **kwargs):
        calls.append(kwargs)

    monkeypatch.setattr(aiosmtplib, "send", capture)
    await SmtpMailer("h", 587, "u", "p", "f@test.local", "N").send("to@test.local", "s", "t")
    await SmtpMailer("h", 2525, "u", "p", "f@test.local", "N").send("to@test.local", "s", "t")
    await SmtpMailer("h", 465, "u", "p", "f@test.local", "N", secure=True).send("to@test.local", "s", "t")

    # plain connections on any port upgrade when the server offers STARTTLS
    assert (calls[0]["use_tls"], calls[0]["start_tls"]) == (False, None)
    assert (calls[1]["use_tls"], calls[1]["start_tls"]) == (False, None)
    assert (calls[2]["use_tls"], calls[2]["start_tls"]) == (True, False)
