from movers.common.logging_setup import get_logger

logger = get_logger("movers.otp")

OTP_LENGTH = 6
OTP_EXPIRY_SECONDS = 600
MIN_RESEND_SECONDS = 30
MAX_ATTEMPTS = 5

DEFAULT_COUNTRY_CODE = "+91"
CODE_PLACEHOLDER = "{{CODE}}"
