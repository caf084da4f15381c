from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from movers.schema.full_schema import QuoteRequest, VehicleType


async def get_quote_request(session: AsyncSession, quote_id: str) -> Optional[QuoteRequest]:
    res = await session.execute(select(QuoteRequest).where(QuoteRequest.id == quote_id))
    return res.scalar_one_or_none()


async def create_quote_request(session: AsyncSession, **fields) -> QuoteRequest:
    quote = QuoteRequest(**fields)
    session.add(quote)
    await session.flush()
    return quote


async def get_vehicle_name(session: AsyncSession, vehicle_type_id: Optional[str]) -> str:
    if not vehicle_type_id:
        return ""
    res = await session.execute(select(VehicleType.name).where(VehicleType.id == vehicle_type_id))
    return res.scalar_one_or_none() or ""
