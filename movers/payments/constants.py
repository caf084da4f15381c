from movers.common.logging_setup import get_logger

logger = get_logger("movers.payments")

RAZORPAY_KEYS = ("RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET")
DEFAULT_CURRENCY = "INR"
SIGNATURE_HEADER = "X-Razorpay-Signature"
