from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from movers.common.utils import now
from movers.db.utils import dialect_insert
from movers.schema.full_schema import Booking, Payment, new_id


async def get_payment_by_order_id(session: AsyncSession, razorpay_order_id: str) -> Optional[Payment]:
    stmt = (
        select(Payment)
        .where(Payment.razorpay_order_id == razorpay_order_id)
        .execution_options(populate_existing=True)
    )
    res = await session.execute(stmt)
    return res.scalar_one_or_none()


async def upsert_payment(session: AsyncSession, razorpay_order_id: str, razorpay_payment_id: Optional[str],
                         status: Optional[str], amount: Optional[float], booking_id: Optional[str]) -> None:
    """One row per gateway order; later events for the same order overwrite it."""
    ts = now()
    values = {
        "razorpay_payment_id": razorpay_payment_id,
        "status": status,
        "amount": amount,
        "updated_at": ts,
    }
    # an event without notes must not detach the payment from its booking
    if booking_id:
        values["booking_id"] = booking_id

    insert = dialect_insert(session)
    stmt = insert(Payment).values(
        id=new_id(),
        razorpay_order_id=razorpay_order_id,
        created_at=ts,
        **values,
    ).on_conflict_do_update(
        index_elements=["razorpay_order_id"],
        set_=values,
    )
    await session.execute(stmt)


async def set_booking_payment_status(session: AsyncSession, booking_id: str, payment_status: str) -> bool:
    stmt = (
        update(Booking)
        .where(Booking.id == booking_id)
        .values(payment_status=payment_status, updated_at=now())
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1
