"""Allow ``python -m unstream.cli`` execution."""

import sys

from unstream.cli.commands import main

sys.exit(main())
