from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional
import aiosmtplib
from fastapi import Depends
from movers.common.custom_exceptions import UpstreamError
from movers.config.settings import Settings, get_settings
from movers.gateways.constants import logger


class SmtpMailer:
    """Hands a finished message to the configured SMTP relay."""

    def __init__(self, hostname: str, port: int, username: str, password: str,
                 sender: str, sender_name: str, secure: bool = False, timeout: float = 20.0):
        self.hostname = hostname
        self.port = int(port)
        self.username = username
        self.password = password
        self.sender = sender
        self.sender_name = sender_name
        self.secure = secure
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(
            hostname=settings.SMTP_HOST or "",
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER or "",
            password=settings.SMTP_PASS or "",
            sender=settings.smtp_sender or "",
            sender_name=settings.SMTP_FROM_NAME,
            secure=settings.SMTP_SECURE,
            timeout=settings.GATEWAY_TIMEOUT_SECONDS,
        )

    def build_message(self, to: str, subject: str, text: str, html: Optional[str] = None) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((self.sender_name, self.sender))
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    async def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> None:
        msg = self.build_message(to, subject, text, html)

        # SMTP_SECURE means implicit TLS; otherwise STARTTLS is used whenever the server offers it
        use_tls = self.secure
        start_tls = False if self.secure else None
        try:
            await aiosmtplib.send(
                msg,
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                password=self.password,
                use_tls=use_tls,
                start_tls=start_tls,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("mail.send.failed", extra={"subject": subject, "error_type": type(exc).__name__})
            raise UpstreamError("Failed to send email") from exc

        logger.info("mail.send.accepted", extra={"subject": subject})


def get_mailer(settings: Settings = Depends(get_settings)) -> SmtpMailer:
    return SmtpMailer.from_settings(settings)
