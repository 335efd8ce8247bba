"""Allow ``python -m preference_index``."""

import sys

from .cli import main

sys.exit(main())
