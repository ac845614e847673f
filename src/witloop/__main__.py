import sys

from witloop.cli import main

sys.exit(main())
