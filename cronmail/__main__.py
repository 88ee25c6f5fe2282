"""Allow running as: python -m cronmail <command...>"""

import sys

from cronmail.cli import main

sys.exit(main())
