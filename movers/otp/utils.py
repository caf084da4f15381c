import hashlib
import hmac
import re
import secrets
from movers.otp.constants import CODE_PLACEHOLDER, DEFAULT_COUNTRY_CODE, OTP_LENGTH

_NON_DIGITS = re.compile(r"\D")


def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value or "")


def normalize_phone(raw: str) -> str:
    """Canonical ``+<country><number>`` form, or ``""`` when the input cannot be a phone.

    10 bare digits are taken as a national number and get the default country code,
    11 or more bare digits are taken as already carrying a country code.
    """
    trimmed = (raw or "").strip()
    if not trimmed:
        return ""

    if trimmed.startswith("+"):
        rest = digits_only(trimmed[1:])
        return f"+{rest}" if rest else ""

    digits = digits_only(trimmed)
    if len(digits) == 10:
        return f"{DEFAULT_COUNTRY_CODE}{digits}"
    if len(digits) >= 11:
        return f"+{digits}"
    return ""


def generate_otp(length: int = OTP_LENGTH) -> str:
    return str(secrets.randbelow(10 ** length)).zfill(length)


def hash_otp(phone: str, code: str, salt: str) -> str:
    return hashlib.sha256(f"{phone}|{code}|{salt}".encode()).hexdigest()


def otp_matches(stored_hash: str, phone: str, code: str, salt: str) -> bool:
    return hmac.compare_digest(hash_otp(phone, code, salt), stored_hash or "")


def render_sms(template: str, code: str) -> str:
    return template.replace(CODE_PLACEHOLDER, code)
