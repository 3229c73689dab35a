"""
Logging setup for the bakery pricing core.

Every module logs under the ``bakery`` namespace (``bakery.pricing.coupons``,
``bakery.api.client``...). The level comes from ``LOG_LEVEL``.
"""
import logging
import os
import sys

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("bakery")


def _install_handler(level: str) -> None:
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)


_install_handler(LOG_LEVEL)

# Prevent propagation to root logger (avoid duplicate logs)
logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger under the ``bakery`` namespace.

    Args:
        name: Dotted suffix, e.g. ``"pricing.cart"`` gives ``bakery.pricing.cart``

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"bakery.{name}")
    return logger
