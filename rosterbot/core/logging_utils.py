from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# message texts are logged in full to the file only up to this many characters
MAX_VALUE_LEN = 300

# third-party loggers that flood DEBUG
_QUIET = {"aiogram": logging.INFO, "googleapiclient": logging.WARNING}


def setup_logging(cfg: Any) -> logging.Logger:
    """
    Console shows cfg.LOG_LEVEL (INFO by default); the rotating file keeps DEBUG,
    i.e. every scheduler pass, every outbound text and every button tap.
    """
    log_dir = os.path.dirname(cfg.LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    root = logging.getLogger("rosterbot")
    root.setLevel(logging.DEBUG)
    fmt = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    fh = RotatingFileHandler(
        cfg.LOG_FILE, maxBytes=1_000_000, backupCount=10, encoding="utf-8"
    )
    fh.setFormatter(fmt)
    fh.setLevel(logging.DEBUG)

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    ch.setLevel(getattr(cfg, "LOG_LEVEL", "INFO"))

    root.handlers.clear()
    root.addHandler(fh)
    root.addHandler(ch)

    for name, level in _QUIET.items():
        logging.getLogger(name).setLevel(level)

    return root


def _short(value: Any) -> Any:
    if isinstance(value, str) and len(value) > MAX_VALUE_LEN:
        return value[:MAX_VALUE_LEN] + f"...(+{len(value) - MAX_VALUE_LEN})"
    return value


def kv(**kwargs: Any) -> str:
    """key=value pairs, values repr()'d; long strings are cut."""
    return " ".join(f"{k}={_short(v)!r}" for k, v in kwargs.items())
