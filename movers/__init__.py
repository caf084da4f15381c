import logging

logger = logging.getLogger("movers")
