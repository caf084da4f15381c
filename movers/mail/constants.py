from jinja2 import Environment, PackageLoader, select_autoescape
from movers.common.logging_setup import get_logger

logger = get_logger("movers.mail")

templates = Environment(
    loader=PackageLoader("movers", "templates"),
    autoescape=select_autoescape(["html", "xml", "jinja"]),
)

QUOTE_PHONE_DIGITS = 10
DEFAULT_QUOTE_SOURCE = "app"
SMTP_REQUIRED = ["SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASS", "SMTP_FROM"]
