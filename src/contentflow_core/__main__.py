"""Allow ``python -m contentflow_core``."""

import sys

from contentflow_core.cli import main

if __name__ == "__main__":
    sys.exit(main())
