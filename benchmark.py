#!/usr/bin/env python3
"""
Convenience entry point for the phase-timing benchmark.

Usage:
    python benchmark.py                       # Windowed, all cores
    python benchmark.py --threads 1           # Serial baseline
    python benchmark.py --headless --sweep    # One results line per thread count
"""

import sys

from tools.metrics import main

if __name__ == "__main__":
    sys.exit(main())
