#!/usr/bin/env python3
"""
Convenience entry point for summarizing benchmark results.

Usage:
    python speedup.py                     # speedup_data.txt
    python speedup.py other_results.txt
"""

import sys

from tools.speedup import main

if __name__ == "__main__":
    sys.exit(main())
