import sys

from wordle_viz.cli import main

sys.exit(main())
