"""CLI entry point for stakeout.

Usage:
    python -m stakeout 'ruby -Itest %%' 'test/**/*.rb'
"""

import sys


def main() -> int:
    """Main entry point for the stakeout CLI."""
    from stakeout.cli import run_cli

    return run_cli(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
