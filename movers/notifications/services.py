from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from movers.common.custom_exceptions import AppError, NotFound, UpstreamError, ValidationFailed
from movers.gateways.push import ExpoPushClient
from movers.notifications.constants import NO_TOKENS_REASON, OTP_EVENT_TYPE, REASSIGNED_DRIVER_MESSAGE, logger
from movers.notifications.messages import StatusMessages, normalize_otp_kind, otp_messages, status_messages
from movers.notifications.recipients import Audience, PushTarget, dedupe_targets
from movers.notifications.repository import get_booking, get_user, list_admin_users
from movers.schema.full_schema import Booking, BookingStatus


def _clean(value: Any) -> str:
    return str(value if value is not None else "").strip()


async def _load_booking(session: AsyncSession, booking_id: str) -> Booking:
    booking = await get_booking(session, booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    if not booking.user_id:
        logger.error("push.booking.missing_user", extra={"booking_id": booking_id})
        raise AppError("Booking missing user_id")
    return booking


async def _user_target(session: AsyncSession, user_id: Optional[str], body: str,
                       audience: Audience) -> Optional[PushTarget]:
    user = await get_user(session, user_id)
    if user is None or not user.expo_push_token:
        return None
    return PushTarget(token=user.expo_push_token, body=body, audience=audience, user_id=user.id)


async def _customer_and_admin_targets(session: AsyncSession, booking: Booking,
                                      messages: StatusMessages) -> List[PushTarget]:
    targets: List[PushTarget] = []
    customer = await _user_target(session, booking.user_id, messages.customer, Audience.CUSTOMER)
    if customer is not None:
        targets.append(customer)

    for admin in await list_admin_users(session):
        if admin.expo_push_token:
            targets.append(PushTarget(token=admin.expo_push_token, body=messages.admin,
                                      audience=Audience.ADMIN, user_id=admin.id))
    return targets


async def _driver_targets(session: AsyncSession, booking: Booking, status: str, messages: StatusMessages,
                          old_driver_id: str = "", new_driver_id: str = "") -> List[PushTarget]:
    booking_driver_id = _clean(booking.driver_id)
    old_driver_id = old_driver_id or (booking_driver_id if status == BookingStatus.UNASSIGNED.value else "")
    new_driver_id = new_driver_id or (booking_driver_id if status == BookingStatus.ASSIGNED.value else "")

    candidates = [await _user_target(session, booking_driver_id, messages.driver, Audience.DRIVER)]

    if status == BookingStatus.ASSIGNED.value:
        candidates.append(await _user_target(session, new_driver_id, messages.driver, Audience.DRIVER))
        if old_driver_id and old_driver_id != new_driver_id:
            candidates.append(await _user_target(session, old_driver_id, REASSIGNED_DRIVER_MESSAGE, Audience.DRIVER))

    elif status == BookingStatus.UNASSIGNED.value:
        candidates.append(await _user_target(session, old_driver_id, messages.driver, Audience.DRIVER))

    return [target for target in candidates if target is not None]


async def _dispatch(push_client: ExpoPushClient, targets: List[PushTarget], title: str,
                    data: Dict[str, Any]) -> int:
    """Send to each target in order; one failed delivery does not stop the rest."""
    sent = 0
    for target in targets:
        try:
            await push_client.send(target.token, title, target.body, data)
        except UpstreamError as exc:
            logger.warning(
                "push.send.failed",
                extra={"booking_id": data.get("booking_id"), "audience": target.audience.value,
                       "user_id": target.user_id, "reason": exc.message},
            )
            continue
        sent += 1
    return sent


async def fan_out_status(session: AsyncSession, push_client: ExpoPushClient, booking_id: str, status: str,
                         old_driver_id: str = "", new_driver_id: str = "") -> dict:
    booking = await _load_booking(session, booking_id)
    messages = status_messages(status)

    candidates = await _customer_and_admin_targets(session, booking, messages)
    candidates += await _driver_targets(session, booking, status, messages, old_driver_id, new_driver_id)

    targets = dedupe_targets(candidates)
    if not targets:
        logger.info("push.status.skipped", extra={"booking_id": booking_id, "status": status})
        return {"skipped": True, "reason": NO_TOKENS_REASON}

    sent = await _dispatch(push_client, targets, messages.title, {"booking_id": booking_id, "status": status})
    logger.info("push.status.sent", extra={"booking_id": booking_id, "status": status,
                                           "targets": len(targets), "sent_count": sent})
    return {"sent": True, "sent_count": sent}


async def fan_out_otp(session: AsyncSession, push_client: ExpoPushClient, booking_id: str, otp_kind: str) -> dict:
    booking = await _load_booking(session, booking_id)
    kind = normalize_otp_kind(otp_kind)
    code = _clean(booking.delivery_otp if kind == "delivery" else booking.pickup_otp)
    if not code:
        raise NotFound(f"{kind}_otp_not_found")

    messages = otp_messages(kind, code)
    candidates = await _customer_and_admin_targets(session, booking, messages)
    driver = await _user_target(session, booking.driver_id, messages.driver, Audience.DRIVER)
    if driver is not None:
        candidates.append(driver)

    targets = dedupe_targets(candidates)
    if not targets:
        logger.info("push.otp.skipped", extra={"booking_id": booking_id, "otp_kind": kind})
        return {"skipped": True, "reason": NO_TOKENS_REASON}

    sent = await _dispatch(push_client, targets, messages.title,
                           {"booking_id": booking_id, "type": OTP_EVENT_TYPE, "otp_kind": kind})
    logger.info("push.otp.sent", extra={"booking_id": booking_id, "otp_kind": kind, "sent_count": sent})
    return {"sent": True, "otp_kind": kind, "sent_count": sent}


async def send_booking_status_push(session: AsyncSession, push_client: ExpoPushClient, booking_id: Any,
                                   status: Any = None, event_type: Any = None, otp_kind: Any = None,
                                   old_driver_id: Any = None, new_driver_id: Any = None) -> dict:
    booking_id = _clean(booking_id)
    status = _clean(status)
    event_type = _clean(event_type)

    if not booking_id:
        raise ValidationFailed("booking_id required")
    if not status and event_type != OTP_EVENT_TYPE:
        raise ValidationFailed("status required")

    if event_type == OTP_EVENT_TYPE:
        return await fan_out_otp(session, push_client, booking_id, _clean(otp_kind))

    return await fan_out_status(session, push_client, booking_id, status,
                                _clean(old_driver_id), _clean(new_driver_id))
