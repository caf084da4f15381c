from movers.common.logging_setup import get_logger

logger = get_logger("movers.gateways")

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"
