"""Command-line entry point of the DNS monitor."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from .args import parse_arguments
from .capture import run
from .errors import ArgParserError, HandleSetUpError


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the monitor with ``argv`` (defaults to the process arguments)."""
    if argv is None:
        argv = sys.argv[1:]

    try:
        args = parse_arguments(argv)
    except ArgParserError:
        return 1

    try:
        run(args)
    except HandleSetUpError:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())