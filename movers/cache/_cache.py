from typing import Optional
import redis.asyncio as redis
from movers.config.settings import get_settings


class RedisHolder:
    """Redis client for the process, created on first use when ``REDIS_URL`` is set.

    ``set_client`` swaps the client (tests), ``reset`` closes it so the next ``get`` rebuilds it.
    """

    def __init__(self):
        self._client: Optional[redis.Redis] = None

    def get(self) -> Optional[redis.Redis]:
        if self._client is None:
            url = get_settings().REDIS_URL
            if not url:
                return None
            self._client = redis.Redis.from_url(url, decode_responses=False,
                                                socket_timeout=0.5, socket_connect_timeout=0.5)
        return self._client

    def set_client(self, client: Optional[redis.Redis]) -> None:
        self._client = client

    async def reset(self) -> None:
        if self._client is not None:
            await self._client.aclose()
        self._client = None


redis_holder = RedisHolder()
