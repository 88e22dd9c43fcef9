"""Process-wide logging setup."""
import logging

from lan_linkup.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)
    # httpx logs every outbound request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
