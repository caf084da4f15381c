import hashlib
import hmac
from typing import Optional, Union


def hmac_sha256_hex(payload: Union[bytes, str], secret: str) -> str:
    if isinstance(payload, str):
        payload = payload.encode()
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def verify_hmac_sha256(payload: Union[bytes, str], signature: Optional[str], secret: str) -> bool:
    """Check ``signature`` against the HMAC-SHA256 hex digest of the exact payload bytes.

    The comparison is constant time and exact: case and surrounding whitespace count.
    An empty signature never verifies.
    """
    if not signature:
        return False
    expected = hmac_sha256_hex(payload, secret)
    return hmac.compare_digest(expected, signature)
