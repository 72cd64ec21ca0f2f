#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""Top-level executable and import-compatible shim.

Purpose:
- `python certharvest.py ...` command execution
- imports for users that import from repository root
"""

import os
import sys

from certharvest.cli import main
from certharvest.core import ConnectionPolicy, Dispatcher, FetchResult, harvest
from certharvest.version import __version__

__all__ = [
    "__version__",
    "ConnectionPolicy",
    "Dispatcher",
    "FetchResult",
    "harvest",
    "main",
]

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted")
        try:
            sys.exit(0)
        except SystemExit:
            os._exit(0)
