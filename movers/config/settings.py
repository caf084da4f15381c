from typing import Dict, Iterable, List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./movers.db"
    CORS_ORIGINS: List[str] = ["*"]

    # otp
    OTP_SALT: Optional[str] = None
    OTP_SMS_TEMPLATE: str = "Your Gujarat Relocation Packers & Movers code is {{CODE}}"
    SMS_DISABLED: bool = False

    # twilio
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_FROM_PHONE: Optional[str] = None
    TWILIO_API_BASE: str = "https://api.twilio.com/2010-04-01"

    # razorpay
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    RAZORPAY_WEBHOOK_SECRET: Optional[str] = None
    RZPAY_GATEWAY_URL: str = "https://api.razorpay.com/v1"

    GATEWAY_TIMEOUT_SECONDS: float = 20.0

    # smtp relay
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_SECURE: bool = False
    SMTP_FROM: Optional[str] = None
    SMTP_FROM_NAME: str = "Packers & Movers"
    ADMIN_EMAIL: Optional[str] = None

    MAPBOX_TOKEN: Optional[str] = None

    # per-client throttling of otp sends
    REDIS_URL: Optional[str] = None
    RATE_LIMIT_ENABLED: bool = True
    OTP_SEND_IP_LIMIT: int = 10
    OTP_SEND_IP_WINDOW_SECONDS: int = 600

    class Config:
        env_file = ".env"
        extra="ignore"

    def missing(self, names: Iterable[str]) -> List[str]:
        return [name for name in names if not getattr(self, name, None)]

    @property
    def smtp_sender(self) -> Optional[str]:
        return self.SMTP_FROM or self.SMTP_USER

    def smtp_missing(self, extra: Iterable[str] = ()) -> List[str]:
        missing = self.missing(["SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASS", *extra])
        if not self.smtp_sender:
            missing.append("SMTP_FROM")
        return missing

    def public_config_missing(self) -> Dict[str, bool]:
        return {"mapbox": not self.MAPBOX_TOKEN, "razorpayKeyId": not self.RAZORPAY_KEY_ID}


# process-scoped settings: built on first access, rebuilt only through refresh_settings()
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def refresh_settings() -> Settings:
    global _settings
    _settings = Settings()
    return _settings
