from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from movers.common.utils import json_ok
from movers.db.dependencies import get_session
from movers.gateways.push import ExpoPushClient, get_push_client
from movers.notifications.models import StatusPushIn
from movers.notifications.services import send_booking_status_push

notifications_router = APIRouter()


@notifications_router.post("/send-booking-status-push")
async def booking_status_push(payload: StatusPushIn, session: AsyncSession = Depends(get_session),
                              push_client: ExpoPushClient = Depends(get_push_client)):

    resp = await send_booking_status_push(
        session, push_client, payload.booking_id,
        status=payload.status,
        event_type=payload.event_type,
        otp_kind=payload.otp_kind,
        old_driver_id=payload.old_driver_id,
        new_driver_id=payload.new_driver_id,
    )
    return json_ok(resp)
