from typing import NamedTuple
from movers.notifications.constants import FALLBACK_TITLE, OTP_MESSAGES, OTP_TITLE, STATUS_MESSAGES


class StatusMessages(NamedTuple):
    title: str
    customer: str
    admin: str
    driver: str


def status_messages(status: str) -> StatusMessages:
    status = str(status or "").strip()
    known = STATUS_MESSAGES.get(status)
    if known is not None:
        return StatusMessages(*known)

    human = status.replace("_", " ")
    return StatusMessages(
        title=FALLBACK_TITLE,
        customer=f"Your booking status updated: {human}.",
        admin=f"Booking status updated: {human}.",
        driver=f"Booking status updated: {human}.",
    )


def normalize_otp_kind(kind: str) -> str:
    # anything but an explicit delivery is treated as pickup
    return "delivery" if str(kind or "").strip() == "delivery" else "pickup"


def otp_messages(kind: str, code: str) -> StatusMessages:
    prefix, admin, driver = OTP_MESSAGES[normalize_otp_kind(kind)]
    return StatusMessages(title=OTP_TITLE, customer=f"{prefix}: {code}", admin=admin, driver=driver)
