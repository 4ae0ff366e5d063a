#!/usr/bin/env python3
"""Entry point for running the docsync terminal viewer."""
import sys

from docsync.cli.viewer import main

if __name__ == "__main__":
    sys.exit(main())
