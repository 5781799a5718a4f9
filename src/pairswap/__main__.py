"""Entry point for running as module: python -m pairswap"""

import sys

from pairswap.cli import main

if __name__ == "__main__":
    sys.exit(main())
