"""
Entry point for running portwatch via `python -m portwatch` or `portwatch`.

Every argument is passed through to the forwarding subprocess.
"""

import sys

from .config import config
from .logging_config import configure_logging
from .session import Session


def main(argv=None) -> int:
    """Supervise one forwarding session and return its exit status."""
    configure_logging(config)
    args = sys.argv[1:] if argv is None else argv
    return Session(args, config).run()


if __name__ == "__main__":
    sys.exit(main())
