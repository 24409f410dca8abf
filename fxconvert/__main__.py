import sys

from fxconvert.cli import main

sys.exit(main())
