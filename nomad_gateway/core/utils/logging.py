"""
MotoNomad AI Gateway - Logging Utilities
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger_with_context(module: str, level: Optional[str] = None) -> logging.Logger:
    """Get a `motonomad.<module>` logger writing to stdout."""
    logger = logging.getLogger(f"motonomad.{module}")

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.setLevel((level or "INFO").upper())
    return logger


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """
    Mask a credential for log output.

    Keeps the last `visible` characters so operators can tell keys apart.
    """
    if not value:
        return "<unset>"
    if len(value) <= visible:
        return "*" * len(value)
    return f"{'*' * 8}{value[-visible:]}"


def truncate_for_log(text: str, limit: int = 500) -> str:
    """Cut long response bodies down before logging them."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... ({len(text)} chars)"
