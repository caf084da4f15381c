from fastapi import APIRouter
from movers.api import version_prefix
from movers.common.routes import home_router
from movers.mail.routes import mail_router
from movers.notifications.routes import notifications_router
from movers.otp.routes import otp_router
from movers.payments.routes import payments_router
from movers.payments.webhooks import webhooks_router


public_routers = APIRouter(prefix=version_prefix)

public_routers.include_router(otp_router, tags=["otp"])
public_routers.include_router(payments_router, tags=["payments"])
public_routers.include_router(webhooks_router, tags=["webhooks"])
public_routers.include_router(notifications_router, tags=["notifications"])
public_routers.include_router(mail_router, tags=["mail"])
public_routers.include_router(home_router, tags=["home"])
