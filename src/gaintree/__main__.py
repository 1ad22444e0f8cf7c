"""Allow running the command line with ``python -m gaintree``."""

import sys

from gaintree.cli import main

sys.exit(main())
