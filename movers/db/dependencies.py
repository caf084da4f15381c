from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import  AsyncSession
from movers.db.connection import database

async def get_session() -> AsyncGenerator[AsyncSession,None]:
    async with database.sessionmaker() as session:  # closes the session at the end of the with block
        yield session
