"""Pytest configuration for saucefleet."""

from __future__ import annotations

import sys
from pathlib import Path

# Import the local src tree (not an installed wheel) and the shared fakes module.
ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT / "src", ROOT / "tests"):
    sys.path.insert(0, str(path))
