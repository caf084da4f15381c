from prometheus_fastapi_instrumentator import Instrumentator
from movers.api import version_prefix

instrumentator = Instrumentator(
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", f"{version_prefix}/health"],
    should_instrument_requests_inprogress=True,    # "requests in progress" gauge
    should_group_status_codes=False,
)
