#!/usr/bin/env python3
"""
Convenience entry point for the serial vs parallel correctness check.

Usage:
    python check.py                 # 50 boids, 100 frames
    python check.py --quick         # 16 boids, 10 steps
"""

import sys

from tools.equivalence import main

if __name__ == "__main__":
    sys.exit(main())
