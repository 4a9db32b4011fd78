#!/usr/bin/env python3
"""
prismtrace - an offline CPU ray tracer

Main entry point for rendering scenes; see `prismtrace --help`.
"""

import sys

from prismtrace.cli import main


if __name__ == '__main__':
    sys.exit(main())
