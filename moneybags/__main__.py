import sys

from moneybags.cli import main

sys.exit(main())
