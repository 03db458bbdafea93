"""Utilities for safe structured logging fields."""

from __future__ import annotations

import hashlib
import logging
import sys
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def safe_log_identifier(value: Any, *, prefix: str) -> str:
    """Return a deterministic non-reversible token for log correlation fields.

    Emails are normalized before hashing so the same account always maps to the
    same token regardless of the casing a client submitted.
    """
    text = str(value or "").strip().lower()
    if not text:
        return f"{prefix}-missing"

    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return f"{prefix}-{digest}"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single console handler to the ``app`` logger tree."""
    logger = logging.getLogger("app")
    logger.setLevel(_LEVELS.get(level.upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(handler)
    return logger
