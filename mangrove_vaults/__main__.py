"""Allow running the package as a module: python -m mangrove_vaults"""

import sys

from mangrove_vaults.cli import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
