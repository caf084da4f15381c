import time
from typing import Optional
from fastapi import Depends, Request
from movers.common.custom_exceptions import RateLimited
from movers.config.settings import Settings, get_settings
from movers.rate_limiting.constants import RATE_LIMIT_PREFIX, logger
from movers.rate_limiting.rate_limit_fixed_window import redis_allow
from movers.rate_limiting.utils import _identifier_from_request


def rate_limit_dependency(limit_setting: str, window_setting: str, route_key: Optional[str] = None):
    """Per-client fixed window on a route; limits are read from settings on each request."""
    async def _dep(request: Request, settings: Settings = Depends(get_settings)):
        if not settings.RATE_LIMIT_ENABLED:
            return
        limit = int(getattr(settings, limit_setting))
        window = int(getattr(settings, window_setting))
        identifier = _identifier_from_request(request)
        key = f"{RATE_LIMIT_PREFIX}:ip:{identifier}:{route_key or request.url.path}"

        allowed, remaining, reset = await redis_allow(key, limit, window)
        request.state.rate_limit = {"limit": limit, "remaining": remaining, "reset": reset}
        if not allowed:
            retry_after = max(0, reset - int(time.time()))
            logger.warning("rate_limit.exceeded", extra={"route_key": route_key or request.url.path})
            raise RateLimited("Too many requests", retry_after=retry_after)
    return _dep


otp_send_rate_limit = rate_limit_dependency("OTP_SEND_IP_LIMIT", "OTP_SEND_IP_WINDOW_SECONDS",
                                            route_key="send-booking-otp")
