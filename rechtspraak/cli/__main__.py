"""Allow ``python -m rechtspraak.cli`` execution."""

import sys

from rechtspraak.cli.commands import main

sys.exit(main())
