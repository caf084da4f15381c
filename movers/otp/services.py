from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from movers.common.custom_exceptions import ConfigurationError, NotFound, RateLimited, StateError, ValidationFailed
from movers.common.utils import as_utc, now
from movers.config.settings import Settings
from movers.gateways.sms import TWILIO_SETTINGS, TwilioSmsClient
from movers.otp.constants import MAX_ATTEMPTS, MIN_RESEND_SECONDS, OTP_EXPIRY_SECONDS, OTP_LENGTH, logger
from movers.otp.repository import get_otp_record, mark_otp_verified, record_failed_attempt, upsert_otp_record
from movers.otp.utils import digits_only, generate_otp, hash_otp, normalize_phone, otp_matches, render_sms


def _require_salt(settings: Settings) -> str:
    if not settings.OTP_SALT:
        raise ConfigurationError.for_missing("OTP", ["OTP_SALT"])
    return settings.OTP_SALT


async def issue_booking_otp(session: AsyncSession, raw_phone: str, settings: Settings,
                            sms_client: TwilioSmsClient, current_time: Optional[datetime] = None) -> dict:
    """
    Issue a fresh code for ``raw_phone`` and dispatch it by SMS.

    The row is committed before the SMS goes out, so a failed dispatch still
    replaces any previous code (the caller sees the upstream error).
    """
    phone = normalize_phone(raw_phone)
    if not phone:
        raise ValidationFailed("Valid phone required")

    salt = _require_salt(settings)
    if not settings.SMS_DISABLED:
        missing = settings.missing(TWILIO_SETTINGS)
        if missing:
            raise ConfigurationError.for_missing("Twilio", missing)

    current_time = current_time or now()

    existing = await get_otp_record(session, phone)
    if existing is not None and existing.last_sent_at is not None:
        elapsed = (current_time - as_utc(existing.last_sent_at)).total_seconds()
        if elapsed < MIN_RESEND_SECONDS:
            logger.info("otp.issue.rate_limited", extra={"phone": phone, "elapsed_seconds": round(elapsed, 1)})
            raise RateLimited("Please wait before resending OTP",
                              retry_after=max(1, int(MIN_RESEND_SECONDS - elapsed)))

    code = generate_otp(OTP_LENGTH)
    expires_at = current_time + timedelta(seconds=OTP_EXPIRY_SECONDS)

    await upsert_otp_record(session, phone, hash_otp(phone, code, salt), expires_at, current_time)
    await session.commit()
    logger.info("otp.issue.stored", extra={"phone": phone, "expires_at": expires_at.isoformat()})

    response = {"sent": True, "phone": phone, "expires_in": OTP_EXPIRY_SECONDS}

    if settings.SMS_DISABLED:
        logger.warning("otp.issue.sms_disabled", extra={"phone": phone})
        response["dev_code"] = code
        return response

    sms = await sms_client.send(phone, render_sms(settings.OTP_SMS_TEMPLATE, code))
    response["sid"] = sms.get("sid")
    return response


async def verify_booking_otp(session: AsyncSession, raw_phone: str, raw_code: str, settings: Settings,
                             current_time: Optional[datetime] = None) -> dict:
    phone = normalize_phone(raw_phone)
    if not phone:
        raise ValidationFailed("Valid phone required")

    code = digits_only(raw_code)
    if len(code) != OTP_LENGTH:
        raise ValidationFailed(f"{OTP_LENGTH}-digit code required")

    salt = _require_salt(settings)
    current_time = current_time or now()

    record = await get_otp_record(session, phone)
    if record is None:
        raise NotFound("OTP not found")

    # checked in this order: an expired code must not use up an attempt
    if record.verified:
        return {"valid": True, "already_verified": True}

    if current_time >= as_utc(record.expires_at):
        logger.info("otp.verify.expired", extra={"phone": phone})
        raise StateError("OTP expired")

    if record.attempts >= MAX_ATTEMPTS:
        logger.warning("otp.verify.locked", extra={"phone": phone, "attempts": record.attempts})
        raise StateError("Too many attempts", status_code=429)

    if otp_matches(record.otp_hash, phone, code, salt):
        verified = await mark_otp_verified(session, phone, record.otp_hash)
        await session.commit()
        if not verified:
            # row was re-issued between read and write
            logger.info("otp.verify.superseded", extra={"phone": phone})
            raise StateError("Invalid OTP")
        logger.info("otp.verify.success", extra={"phone": phone})
        return {"valid": True}

    counted = await record_failed_attempt(session, phone, MAX_ATTEMPTS)
    await session.commit()
    if not counted:
        latest = await get_otp_record(session, phone)
        if latest is not None and latest.verified:
            return {"valid": True, "already_verified": True}
        raise StateError("Too many attempts", status_code=429)

    logger.info("otp.verify.mismatch", extra={"phone": phone, "attempts": record.attempts + 1})
    raise StateError("Invalid OTP")
