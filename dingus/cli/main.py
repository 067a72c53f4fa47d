"""Main CLI entry point for dingus."""

import sys
from typing import Optional

from .commands import run_command


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    return run_command(args)


if __name__ == '__main__':
    sys.exit(main())
