"""Run the dotweave test suite without pytest.

Usage: python tests/run_tests.py [PATTERN]  (default ``test_*.py``)
"""
from __future__ import annotations

import logging
import os
import sys
import unittest
from pathlib import Path


def main(argv: list[str]) -> int:
    pattern = argv[0] if argv else "test_*.py"
    if os.getenv("DOTWEAVE_DEBUG") == "1":
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    tests_dir = Path(__file__).resolve().parent
    suite = unittest.defaultTestLoader.discover(start_dir=str(tests_dir), pattern=pattern)
    result = unittest.TextTestRunner(verbosity=2).run(suite)
    return 0 if result.wasSuccessful() else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
