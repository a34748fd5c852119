"""Run a supervised port-forward."""

import sys

from portwatch.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
