"""Operator console for Mangrove vaults."""

from typing import NoReturn

__version__ = "0.1.0"


def _entry_point() -> NoReturn:
    """Entry point for the mangrove-vaults script."""
    import sys

    from mangrove_vaults.cli import main

    raise SystemExit(main(sys.argv[1:]))
