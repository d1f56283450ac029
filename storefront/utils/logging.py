# storefront/utils/logging.py
import logging

from storefront.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def _configure_root():
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))

    root = logging.getLogger("storefront")
    root.addHandler(handler)
    root.setLevel(LOG_LEVEL)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    _configure_root()
    return logging.getLogger(name)
