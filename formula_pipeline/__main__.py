"""Allow ``python -m formula_pipeline``."""

import sys

from .cli import main

sys.exit(main())
