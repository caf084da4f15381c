import time
from typing import Tuple
from redis.exceptions import NoScriptError, RedisError
from movers.rate_limiting import constants
from movers.cache._cache import redis_holder
from movers.rate_limiting.constants import FAIL_OPEN, USE_IN_MEMORY_FALLBACK, logger
from movers.rate_limiting.lua_scripts import LUA_FIXED_WINDOW_INCR_AND_PEXPIRE
from movers.rate_limiting.utils import _ensure_lua_loaded, _in_memory_allow


async def redis_allow(key: str, limit: int, window: int) -> Tuple[bool, int, int]:
    """
    Returns (allowed: bool, remaining: int, reset_ts: int)
    """
    rc = redis_holder.get()
    if rc is None:
        return await _in_memory_allow(key, limit, window)

    pexpire_ms = int(window * 1000)

    try:
        sha = await _ensure_lua_loaded(rc)
        if sha:
            try:
                res = await rc.evalsha(sha, 1, key, pexpire_ms)
            except NoScriptError:
                # script cache was flushed on the server
                constants._script_sha = None
                res = await rc.eval(LUA_FIXED_WINDOW_INCR_AND_PEXPIRE, 1, key, pexpire_ms)
        else:
            res = await rc.eval(LUA_FIXED_WINDOW_INCR_AND_PEXPIRE, 1, key, pexpire_ms)

        now = int(time.time())
        if not res or len(res) < 2:
            # conservative fallback: allow
            return True, max(0, limit - 1), now + window
        count = int(res[0])
        ttl_ms = int(res[1])
        reset_ts = now + (ttl_ms // 1000) if ttl_ms > 0 else now + window
        allowed = count <= limit
        remaining = max(0, limit - count) if allowed else 0
        return allowed, remaining, reset_ts
    except (RedisError, OSError) as e:
        logger.warning("rate_limit.redis_unavailable", extra={"error_type": type(e).__name__})

        if USE_IN_MEMORY_FALLBACK:
            return await _in_memory_allow(key, limit, window)
        now = int(time.time())
        if FAIL_OPEN:
            return True, max(0, limit - 1), now + window
        return False, 0, now + window
