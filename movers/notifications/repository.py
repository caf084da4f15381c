from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from movers.schema.full_schema import ADMIN_ROLES, Booking, Users


async def get_booking(session: AsyncSession, booking_id: str) -> Optional[Booking]:
    res = await session.execute(select(Booking).where(Booking.id == booking_id))
    return res.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: Optional[str]) -> Optional[Users]:
    if not user_id:
        return None
    res = await session.execute(select(Users).where(Users.id == user_id))
    return res.scalar_one_or_none()


async def list_admin_users(session: AsyncSession) -> List[Users]:
    stmt = (
        select(Users)
        .where(Users.role.in_([role.value for role in ADMIN_ROLES]))
        .order_by(Users.created_at, Users.id)
    )
    res = await session.execute(stmt)
    return list(res.scalars().all())
