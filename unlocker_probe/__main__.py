import sys

from unlocker_probe.cli import main

sys.exit(main())
