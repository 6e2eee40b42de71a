"""Allow ``python -m genoprot``."""

import sys

from genoprot.cli import main

if __name__ == "__main__":
    sys.exit(main())
