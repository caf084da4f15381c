import time
from typing import Tuple
from fastapi import Request
from movers.rate_limiting import constants
from movers.rate_limiting.lua_scripts import LUA_FIXED_WINDOW_INCR_AND_PEXPIRE


async def _ensure_lua_loaded(rc):
    """
    Load the Lua script into Redis script cache and store SHA.
    Called once lazily.
    """
    if constants._script_sha:
        return constants._script_sha
    async with constants._script_lock:
        if constants._script_sha:
            return constants._script_sha
        try:
            constants._script_sha = await rc.script_load(LUA_FIXED_WINDOW_INCR_AND_PEXPIRE)
        except Exception:
            # If script_load fails, we fall back to EVAL (slower) in calls
            constants._script_sha = None
        return constants._script_sha


def _identifier_from_request(request: Request) -> str:
    # X-Forwarded-For: trust only when behind proper proxy
    xff = request.headers.get("X-Forwarded-For")
    if xff:
        client_host = xff.split(",")[0].strip()
    else:
        client_host = request.client.host if request.client else "unknown"
    return client_host or "unknown"


def _sweep_expired(now: int) -> None:
    expired = [k for k, v in constants._in_memory_counters.items() if v["expires_at"] <= now]
    for k in expired:
        del constants._in_memory_counters[k]


# simple non distributed fallback for redis unavailability
async def _in_memory_allow(key: str, limit: int, window: int) -> Tuple[bool, int, int]:
    """
    Per-process fixed-window counter. Returns (allowed, remaining, reset_ts).
    """
    async with constants._in_memory_lock:
        now = int(time.time())
        existing = constants._in_memory_counters.get(key)
        if not existing or existing["expires_at"] <= now:
            _sweep_expired(now)
            constants._in_memory_counters[key] = {"count": 1, "expires_at": now + window}
            return True, max(0, limit - 1), now + window

        if existing["count"] >= limit:
            return False, 0, existing["expires_at"]

        existing["count"] += 1
        return True, max(0, limit - existing["count"]), existing["expires_at"]


def clear_in_memory_counters() -> None:
    constants._in_memory_counters.clear()
