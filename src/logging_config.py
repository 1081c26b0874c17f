"""Logging setup for the matcher, its scripts and the Streamlit runner."""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FILE_NAME = "match.log"
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

# Marks handlers added here so a second call does not duplicate output
_HANDLER_TAG = "_sku_matcher_handler"


class _JSONFormatter(logging.Formatter):
    """Emit one JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def _tag(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG, True)
    return handler


def configure_logging(log_dir: Optional[Union[str, Path]] = None) -> int:
    """
    Console handler always, JSON rotating file handler when log_dir is given.

    Level comes from LOG_LEVEL (default INFO). Safe to call more than once:
    handlers from an earlier call are replaced, not stacked.

    Returns the effective level.
    """
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    # --- console handler (human-readable), always available ---
    console_handler = _tag(logging.StreamHandler())
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # --- file handler (JSON, 10 MB, 5 backups), best effort ---
    file_handler = None
    if log_dir is not None:
        log_path = Path(log_dir) / LOG_FILE_NAME
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = _tag(RotatingFileHandler(
                str(log_path),
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            ))
            file_handler.setLevel(level)
            file_handler.setFormatter(_JSONFormatter())
        except OSError:
            logging.warning("Cannot write to %s, file logging disabled, using console only.", log_path)
            file_handler = None

    root.setLevel(level)
    root.addHandler(console_handler)
    if file_handler:
        root.addHandler(file_handler)
    return level
