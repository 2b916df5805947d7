"""Test-series attempt engine: timed attempts, auto-grading and results."""
