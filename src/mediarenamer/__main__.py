import sys

from mediarenamer.cli import main

sys.exit(main())
