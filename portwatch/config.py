"""
Configuration for portwatch.

Loads settings from environment variables (and a .env file, if present)
with sensible defaults. Nothing here is parsed from the command line: every
argument is passed through to the forwarding subprocess.
"""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _split(value: str) -> list[str]:
    return shlex.split(value) if value else []


@dataclass
class Config:
    """Portwatch configuration."""

    # Forwarding subprocess
    forward_command: str = os.environ.get("PORTWATCH_COMMAND", "kubectl")
    forward_subcommand: list[str] = field(
        default_factory=lambda: _split(os.environ.get("PORTWATCH_SUBCOMMAND", "port-forward"))
    )

    # Health checks
    health_interval: float = float(os.environ.get("PORTWATCH_HEALTH_INTERVAL", "3"))
    health_timeout: float = float(os.environ.get("PORTWATCH_HEALTH_TIMEOUT", "10"))

    # Logging
    log_level: str = os.environ.get("PORTWATCH_LOG_LEVEL", "WARNING").upper()
    log_file: Path = None
    log_max_bytes: int = int(os.environ.get("LOG_MAX_BYTES", str(10 * 1024 * 1024)))  # 10MB
    log_backup_count: int = int(os.environ.get("LOG_BACKUP_COUNT", "5"))

    def __post_init__(self):
        """Resolve the optional log file path."""
        if self.log_file is None and os.environ.get("PORTWATCH_LOG_FILE"):
            self.log_file = Path(os.environ["PORTWATCH_LOG_FILE"]).expanduser()
        elif self.log_file is not None:
            self.log_file = Path(self.log_file)


config = Config()
