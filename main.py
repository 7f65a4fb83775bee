#!/usr/bin/env python3
"""Runs the Barforge crawl harness from a source checkout, e.g. ``python main.py crawl``."""

from __future__ import annotations

import sys
from pathlib import Path

SRC_PATH = Path(__file__).resolve().parent / "src"
if SRC_PATH.exists() and str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from barforge_e2e.cli import main  # noqa: E402


if __name__ == "__main__":
    main()
