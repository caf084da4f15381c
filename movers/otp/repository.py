from datetime import datetime
from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from movers.db.utils import dialect_insert
from movers.schema.full_schema import BookingOtp


async def get_otp_record(session: AsyncSession, phone: str) -> Optional[BookingOtp]:
    stmt = (
        select(BookingOtp)
        .where(BookingOtp.phone == phone)
        .execution_options(populate_existing=True)
    )
    res = await session.execute(stmt)
    return res.scalar_one_or_none()


async def upsert_otp_record(session: AsyncSession, phone: str, otp_hash: str,
                            expires_at: datetime, sent_at: datetime) -> None:
    # single statement, so readers never see the new hash with the old expiry
    values = {
        "otp_hash": otp_hash,
        "expires_at": expires_at,
        "attempts": 0,
        "verified": False,
        "last_sent_at": sent_at,
    }
    insert = dialect_insert(session)
    stmt = insert(BookingOtp).values(phone=phone, **values).on_conflict_do_update(
        index_elements=["phone"],
        set_=values,
    )
    await session.execute(stmt)


async def mark_otp_verified(session: AsyncSession, phone: str, otp_hash: str) -> bool:
    """Flip ``verified`` for the row that still carries ``otp_hash``.

    Returns False when the row was replaced by a newer issuance in the meantime.
    """
    stmt = (
        update(BookingOtp)
        .where(
            BookingOtp.phone == phone,
            BookingOtp.otp_hash == otp_hash,
            BookingOtp.verified.is_(False),
        )
        .values(verified=True)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1


async def record_failed_attempt(session: AsyncSession, phone: str, max_attempts: int) -> bool:
    """Increment ``attempts`` unless the cap is already reached. Returns whether a row was counted."""
    stmt = (
        update(BookingOtp)
        .where(
            BookingOtp.phone == phone,
            BookingOtp.attempts < max_attempts,
            BookingOtp.verified.is_(False),
        )
        .values(attempts=BookingOtp.attempts + 1)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1
