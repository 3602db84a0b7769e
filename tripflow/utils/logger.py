from __future__ import annotations
import json
import logging
import os
from typing import Any

__all__ = ["get_logger", "truncate"]


def truncate(s: Any, limit: int = 2000) -> str:
    """Safely truncate long values for logs (keeps unicode; appends ellipsis)."""
    if not isinstance(s, str):
        try:
            s = json.dumps(s, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            s = str(s)
    return s if len(s) <= limit else (s[:limit] + " …[truncated]")


def get_logger(name: str = "tripflow") -> logging.Logger:
    """Create or fetch a configured logger with a console handler (+ file handler if LOGFILE is set).
    Respects LOGLEVEL env. Idempotent (won't duplicate handlers).
    """
    level = getattr(logging, os.getenv("LOGLEVEL", "INFO").upper(), logging.INFO)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    # children propagate to the configured "tripflow" root logger
    if name != "tripflow" and name.startswith("tripflow."):
        get_logger("tripflow")
        return logger

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
               for h in logger.handlers):
        ch = logging.StreamHandler()
        ch.setLevel(level)
        ch.setFormatter(fmt)
        logger.addHandler(ch)

    logfile = os.getenv("LOGFILE")
    if logfile and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        fh = logging.FileHandler(logfile, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger
