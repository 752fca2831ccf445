import sys

from orestats.cli import main

sys.exit(main())
