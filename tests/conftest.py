import os

# runtime config is read at import time, so it must be in place before the app is imported
os.environ.setdefault("ENV", "dev")
os.environ["METRICS_ENABLED"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"

from typing import Optional
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from movers.cache._cache import redis_holder
from movers.config.settings import refresh_settings
from movers.db.connection import database, init_db
from movers.gateways.mailer import get_mailer
from movers.gateways.push import get_push_client
from movers.gateways.sms import get_sms_client
from movers.main import app
from movers.rate_limiting import constants as rl_constants
from movers.rate_limiting.utils import clear_in_memory_counters
from tests.helpers import OTP_SALT, FakeMailer, FakePushClient, FakeSmsClient

BASE_ENV = {
    "OTP_SALT": OTP_SALT,
    "SMS_DISABLED": "true",
    "RATE_LIMIT_ENABLED": "false",
    "RAZORPAY_KEY_ID": "rzp_test_key",
    "RAZORPAY_KEY_SECRET": "rzp_test_secret",
    "RAZORPAY_WEBHOOK_SECRET": "whsec_test",
    "SMTP_HOST": "smtp.test.local",
    "SMTP_PORT": "587",
    "SMTP_USER": "mailer@test.local",
    "SMTP_PASS": "smtp-pass",
    "ADMIN_EMAIL": "ops@test.local",
    "MAPBOX_TOKEN": "pk.test-mapbox",
}

UNSET_ENV = (
    "REDIS_URL", "TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_FROM_PHONE", "SMTP_FROM",
    "SMTP_SECURE", "OTP_SMS_TEMPLATE", "OTP_SEND_IP_LIMIT", "OTP_SEND_IP_WINDOW_SECONDS", "CORS_ORIGINS",
)


@pytest.fixture
def set_env(monkeypatch):
    """Set (or unset with None) env vars and rebuild the process settings."""
    def _apply(**values: Optional[str]):
        for name, value in values.items():
            if value is None:
                monkeypatch.delenv(name, raising=False)
            else:
                monkeypatch.setenv(name, value)
        return refresh_settings()
    return _apply


@pytest_asyncio.fixture(autouse=True)
async def test_env(set_env, monkeypatch, tmp_path):
    for name in UNSET_ENV:
        monkeypatch.delenv(name, raising=False)
    settings = set_env(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'movers-test.db'}", **BASE_ENV)

    await database.dispose()
    redis_holder.set_client(None)
    rl_constants._script_sha = None
    clear_in_memory_counters()
    await init_db()
    try:
        yield settings
    finally:
        await database.dispose()
        redis_holder.set_client(None)
        clear_in_memory_counters()
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def db_session():
    async with database.sessionmaker() as session:
        yield session


@pytest.fixture
def sms_client():
    fake = FakeSmsClient()
    app.dependency_overrides[get_sms_client] = lambda: fake
    return fake


@pytest.fixture
def push_client():
    fake = FakePushClient()
    app.dependency_overrides[get_push_client] = lambda: fake
    return fake


@pytest.fixture
def mailer():
    fake = FakeMailer()
    app.dependency_overrides[get_mailer] = lambda: fake
    return fake


@pytest_asyncio.fixture
async def ac_client():
    async with LifespanManager(app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
