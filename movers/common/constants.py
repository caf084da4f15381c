import contextvars
from typing import Optional

# Context variable for request id
request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type", "x-request-id"]

PUBLIC_CONFIG_CACHE_CONTROL = "public, max-age=3600"
REQUEST_ID_HEADER = "X-Request-ID"
