"""Command-line tools: benchmark, equivalence check, speedup analysis."""
