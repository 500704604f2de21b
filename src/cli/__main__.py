"""Allow ``python -m src.cli`` as a shorthand for ``python -m src.cli.links``."""

import sys

from src.cli.links import main

sys.exit(main())
