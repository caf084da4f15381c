from datetime import timedelta
from typing import Any, Dict, List, Optional
from sqlalchemy import update
from movers.common.custom_exceptions import UpstreamError
from movers.common.utils import now
from movers.otp.repository import upsert_otp_record
from movers.otp.utils import hash_otp
from movers.schema.full_schema import Booking, BookingOtp, Users

url_prefix = "/api/v1"

OTP_SALT = "test-salt"


class FakeSmsClient:
    def __init__(self):
        self.sent: List[Dict[str, str]] = []

    async def send(self, to: str, body: str) -> dict:
        self.sent.append({"to": to, "body": body})
        return {"sid": f"SM{len(self.sent):04d}", "status": "queued"}


class FakePushClient:
    def __init__(self, failing_tokens=()):
        self.failing_tokens = set(failing_tokens)
        self.sent: List[Dict[str, Any]] = []

    async def send(self, to: str, title: str, body: str, data: Dict[str, Any]) -> dict:
        if to in self.failing_tokens:
            raise UpstreamError("DeviceNotRegistered")
        self.sent.append({"to": to, "title": title, "body": body, "data": data})
        return {"status": "ok", "id": f"ticket-{len(self.sent)}"}


class FakeMailer:
    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    async def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> None:
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})


async def seed_otp(session, phone: str, code: str, *, expires_in: int = 600, sent_ago: int = 120,
                   attempts: int = 0, verified: bool = False):
    """Store an OTP row the way issuance does, then adjust its counters."""
    current = now()
    await upsert_otp_record(session, phone, hash_otp(phone, code, OTP_SALT),
                            current + timedelta(seconds=expires_in), current - timedelta(seconds=sent_ago))
    if attempts or verified:
        await session.execute(
            update(BookingOtp).where(BookingOtp.phone == phone).values(attempts=attempts, verified=verified)
        )
    await session.commit()


async def seed_user(session, *, role: str = "customer", token: Optional[str] = None, **fields) -> Users:
    user = Users(role=role, expo_push_token=token, **fields)
    session.add(user)
    await session.commit()
    return user


async def seed_booking(session, user_id: Optional[str], **fields) -> Booking:
    booking = Booking(user_id=user_id, **fields)
    session.add(booking)
    await session.commit()
    return booking
