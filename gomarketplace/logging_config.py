"""Logging setup shared by the cart modules."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("gomarketplace")


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Configure the root handler once and set the package log level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    logger.setLevel(level)
    return logger
