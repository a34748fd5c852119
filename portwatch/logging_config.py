"""
Logging setup for portwatch.

Diagnostics go to stderr (and optionally a rotating log file). Stdout is
reserved for the forwarding subprocess's own output.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from .config import Config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(cfg: Config) -> None:
    """Configure the root logger from the given config."""
    log_formatter = logging.Formatter(LOG_FORMAT)

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(log_formatter)
    handlers = [console_handler]

    # Rotating file handler (auto-compaction)
    if cfg.log_file:
        cfg.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            cfg.log_file,
            maxBytes=cfg.log_max_bytes,
            backupCount=cfg.log_backup_count,
        )
        file_handler.setFormatter(log_formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.WARNING),
        handlers=handlers,
        force=True,
    )
