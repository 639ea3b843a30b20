"""Executable entry point for ``python -m zeitblock``."""

from __future__ import annotations

import sys

from zeitblock.app import main


if __name__ == "__main__":
    sys.exit(main())
