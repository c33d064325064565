"""
Logging Configuration Module

Provides structured logging with consistent formatting across the application.

Usage:
    from utils.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Recorded corrections", extra={"user_id": user_id})
    logger.error("Profile write failed", exc_info=True)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Dict, Optional

from config.settings import settings


# =============================================================================
# Custom Formatters
# =============================================================================

# Extra attributes copied into JSON records when present
STRUCTURED_FIELDS = ("user_id", "details", "operation")


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, "")
        record.levelname = f"{color}{record.levelname:8}{self.RESET}"
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        for key in STRUCTURED_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


# =============================================================================
# Logger Configuration
# =============================================================================

def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None
) -> None:
    """Install one stdout handler on the root logger (colored, or JSON when LOG_JSON is set)."""
    if level is None:
        level = "DEBUG" if settings.DEBUG else "INFO"
    if json_format is None:
        json_format = settings.LOG_JSON

    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = ColoredFormatter(
            fmt="%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s",
            datefmt="%H:%M:%S"
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; call with __name__."""
    return logging.getLogger(name)


# =============================================================================
# Convenience Functions
# =============================================================================

def log_learning_outcome(
    user_id: str,
    accepted: int,
    skipped: int,
    learned: Dict[str, int]
) -> None:
    """
    Log the result of one correction batch with standard format.

    Args:
        user_id: Owner of the batch
        accepted: Corrections that passed validation (one audit row each)
        skipped: Malformed corrections that were dropped
        learned: Mapping kind name -> number of upserts applied
    """
    logger = get_logger("learning")

    summary = ", ".join(f"{kind}={count}" for kind, count in learned.items()) or "none"
    msg = f"📚 user={user_id} | accepted={accepted} skipped={skipped} | learned: {summary}"

    extra = {"user_id": user_id, "details": {"accepted": accepted, "skipped": skipped, "learned": learned}}
    if accepted:
        logger.info(msg, extra=extra)
    else:
        logger.warning(msg, extra=extra)
