import asyncio
from typing import Dict, Optional
from movers.common.logging_setup import get_logger

logger = get_logger("movers.rate_limiting")

RATE_LIMIT_PREFIX = "rl"    # redis key prefix
FAIL_OPEN = True                  # if redis and the local fallback both fail, allow requests (True) or deny (False)
USE_IN_MEMORY_FALLBACK = True     # simple local window when redis is absent or failing (not distributed)

_script_sha: Optional[str] = None
_script_lock = asyncio.Lock()

_in_memory_counters: Dict[str, dict] = {}
_in_memory_lock = asyncio.Lock()
