#!/usr/bin/env python3
"""
GitHub Backup - Mirror every GitHub repository a user can reach.

This tool discovers the repositories of the authenticated user and of every
organization the user belongs to, and keeps a bare mirror of each one under
a local backup directory: the first run clones, later runs fetch and prune.

Copyright (c) 2025 Michele Tavella <meeghele@proton.me>
Licensed under the MIT License. See LICENSE file for details.

Author: Michele Tavella <meeghele@proton.me>
License: MIT
"""

from __future__ import annotations

import sys
from typing import NoReturn

from argument_parser import parse_arguments
from sync_orchestrator import SyncOrchestrator

# Exit codes
EXIT_EXECUTION_ERROR = 1


def main() -> NoReturn:
    if __name__ != "__main__":
        sys.exit(EXIT_EXECUTION_ERROR)

    cfg = parse_arguments()
    orchestrator = SyncOrchestrator(cfg)
    sys.exit(orchestrator.run())


if __name__ == "__main__":
    main()
