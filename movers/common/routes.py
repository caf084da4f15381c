from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from movers.common.constants import PUBLIC_CONFIG_CACHE_CONTROL
from movers.common.custom_exceptions import AppError
from movers.common.utils import json_ok
from movers.config.settings import Settings, get_settings
from movers.db.dependencies import get_session

home_router = APIRouter()


@home_router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Database connection error")

    return {"status": "healthy"}


@home_router.get("/public-config")
async def public_config(settings: Settings = Depends(get_settings)):
    missing = settings.public_config_missing()
    if any(missing.values()):
        raise AppError("Config missing", extra={"missing": missing})

    data = {"mapbox_token": settings.MAPBOX_TOKEN, "razorpay_key_id": settings.RAZORPAY_KEY_ID}
    return json_ok(data, headers={"Cache-Control": PUBLIC_CONFIG_CACHE_CONTROL})
