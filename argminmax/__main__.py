"""Allow ``python -m argminmax``."""

import sys

from argminmax.cli.generate import main

sys.exit(main())
