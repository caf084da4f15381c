from datetime import timedelta
import httpx
import pytest
from movers.common.custom_exceptions import ConfigurationError, RateLimited, UpstreamError, ValidationFailed
from movers.common.utils import now
from movers.gateways.sms import TwilioSmsClient
from movers.otp.repository import get_otp_record
from movers.otp.services import issue_booking_otp
from movers.otp.utils import otp_matches
from movers.schema.full_schema import BookingOtp
from tests.helpers import OTP_SALT, FakeSmsClient, url_prefix

PHONE = "+919876543210"


@pytest.mark.asyncio
async def test_send_otp_dev_mode_returns_code(ac_client, db_session):
    resp = await ac_client.post(f"{url_prefix}/send-booking-otp", json={"phone": "98765 43210"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["sent"] is True
    assert body["phone"] == PHONE
    assert body["expires_in"] == 600
    assert len(body["dev_code"]) == 6

    record = await get_otp_record(db_session, PHONE)
    assert record is not None
    assert record.attempts == 0
    assert record.verified is False
    assert otp_matches(record.otp_hash, PHONE, body["dev_code"], OTP_SALT)
    assert record.otp_hash != body["dev_code"]


@pytest.mark.asyncio
async def test_send_otp_accepts_numeric_phone(ac_client):
    resp = await ac_client.post(f"{url_prefix}/send-booking-otp", json={"phone": 9876543210})
    assert resp.status_code == 200
    assert resp.json()["phone"] == PHONE


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"phone": "123"}, {"phone": ""}, {},
    {"phone": ["x"]}, {"phone": {"n": 1}}, ["9876543210"], "9876543210",
])
async def test_send_otp_rejects_invalid_phone(ac_client, db_session, payload):
    resp = await ac_client.post(f"{url_prefix}/send-booking-otp", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Valid phone required"}


@pytest.mark.asyncio
async def test_resend_within_throttle_window_is_rejected_and_keeps_first_code(ac_client, db_session):
    first = await ac_client.post(f"{url_prefix}/send-booking-otp", json={"phone": PHONE})
    assert first.status_code == 200
    before = await get_otp_record(db_session, PHONE)
    first_hash, first_expiry, first_sent = before.otp_hash, before.expires_at, before.last_sent_at

    second = await ac_client.post(f"{url_prefix}/send-booking-otp", json={"phone": PHONE})
    assert second.status_code == 429
    assert second.json() == {"error": "Please wait before resending OTP"}
    assert int(second.headers["Retry-After"]) >= 1

    after = await get_otp_record(db_session, PHONE)
    assert after.otp_hash == first_hash
    assert after.expires_at == first_expiry
    assert after.last_sent_at == first_sent


@pytest.mark.asyncio
async def test_resend_after_window_replaces_row(db_session, test_env):
    sms = FakeSmsClient()
    t0 = now()
    first = await issue_booking_otp(db_session, PHONE, test_env, sms, current_time=t0)

    with pytest.raises(RateLimited):
        await issue_booking_otp(db_session, PHONE, test_env, sms, current_time=t0 + timedelta(seconds=29))

    second = await issue_booking_otp(db_session, PHONE, test_env, sms, current_time=t0 + timedelta(seconds=31))
    record = await get_otp_record(db_session, PHONE)
    assert otp_matches(record.otp_hash, PHONE, second["dev_code"], OTP_SALT)
    if second["dev_code"] != first["dev_code"]:
        assert not otp_matches(record.otp_hash, PHONE, first["dev_code"], OTP_SALT)
    assert record.attempts == 0


@pytest.mark.asyncio
async def test_missing_salt_fails_closed(ac_client, db_session, set_env):
    set_env(OTP_SALT=None)
    resp = await ac_client.post(f"{url_prefix}/send-booking-otp", json={"phone": PHONE})
    assert resp.status_code == 500
    assert resp.json() == {"error": "OTP env missing: OTP_SALT"}
    assert await get_otp_record(db_session, PHONE) is None


@pytest.mark.asyncio
async def test_missing_twilio_config_is_reported_before_any_write(ac_client, db_session, set_env):
    set_env(SMS_DISABLED="false", TWILIO_ACCOUNT_SID="AC123")
    resp = await ac_client.post(f"{url_prefix}/send-booking-otp", json={"phone": PHONE})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Twilio env missing: TWILIO_AUTH_TOKEN, TWILIO_FROM_PHONE"}
    assert await get_otp_record(db_session, PHONE) is None


@pytest.mark.asyncio
async def test_sms_dispatch_uses_template_and_returns_sid(ac_client, db_session, set_env, sms_client):
    set_env(SMS_DISABLED="false", TWILIO_ACCOUNT_SID="AC123", TWILIO_AUTH_TOKEN="tok",
            TWILIO_FROM_PHONE="+15005550006", OTP_SMS_TEMPLATE="Code: {{CODE}}")

    resp = await ac_client.post(f"{url_prefix}/send-booking-otp", json={"phone": PHONE})
    assert resp.status_code == 200
    body = resp.json()
    assert body["sid"] == "SM0001"
    assert "dev_code" not in body

    assert len(sms_client.sent) == 1
    message = sms_client.sent[0]
    assert message["to"] == PHONE
    code = message["body"].removeprefix("Code: ")
    record = await get_otp_record(db_session, PHONE)
    assert otp_matches(record.otp_hash, PHONE, code, OTP_SALT)


@pytest.mark.asyncio
async def test_sms_failure_after_store_is_upstream_error(db_session, test_env, set_env):
    settings = set_env(SMS_DISABLED="false", TWILIO_ACCOUNT_SID="AC123", TWILIO_AUTH_TOKEN="tok",
                       TWILIO_FROM_PHONE="+15005550006")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' Phone Number"})

    client = TwilioSmsClient.from_settings(settings)
    client._transport = httpx.MockTransport(handler)

    with pytest.raises(UpstreamError) as exc_info:
        await issue_booking_otp(db_session, PHONE, settings, client)
    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "Invalid 'To' Phone Number"

    # the new code stays stored
    assert await get_otp_record(db_session, PHONE) is not None


@pytest.mark.asyncio
async def test_twilio_client_posts_form_with_basic_auth():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["form"] = dict(httpx.QueryParams(request.content.decode()))
        return httpx.Response(201, json={"sid": "SM42", "status": "queued"})

    client = TwilioSmsClient("AC123", "tok", "+15005550006", "https://twilio.test/2010-04-01/", 5.0,
                             transport=httpx.MockTransport(handler))
    data = await client.send(PHONE, "hello")

    assert data["sid"] == "SM42"
    assert seen["url"] == "https://twilio.test/2010-04-01/Accounts/AC123/Messages.json"
    assert seen["auth"].startswith("Basic ")
    assert seen["form"] == {"To": PHONE, "From": "+15005550006", "Body": "hello"}


@pytest.mark.asyncio
async def test_twilio_transport_error_is_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    client = TwilioSmsClient("AC123", "tok", "+15005550006", "https://twilio.test", 5.0,
                             transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError) as exc_info:
        await client.send(PHONE, "hello")
    assert exc_info.value.message == "Twilio SMS failed"


@pytest.mark.asyncio
async def test_invalid_phone_checked_before_config(db_session, set_env):
    settings = set_env(OTP_SALT=None)
    with pytest.raises(ValidationFailed):
        await issue_booking_otp(db_session, "12", settings, FakeSmsClient())
    with pytest.raises(ConfigurationError):
        await issue_booking_otp(db_session, PHONE, settings, FakeSmsClient())


@pytest.mark.asyncio
async def test_send_otp_stores_long_international_phone(ac_client, db_session):
    long_phone = "+" + "4" * 25
    resp = await ac_client.post(f"{url_prefix}/send-booking-otp", json={"phone": long_phone})
    assert resp.status_code == 200
    assert resp.json()["phone"] == long_phone

    record = await get_otp_record(db_session, long_phone)
    assert record is not None
    # the key column is unbounded so any canonical phone fits on every dialect
    assert getattr(BookingOtp.__table__.c.phone.type, "length", None) is None
