"""Pytest bootstrap to ensure package paths are importable from the repo root."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent

EXTRA_PATHS = [
    ROOT / "apps" / "gatekeeper-api" / "src",
]

for path in EXTRA_PATHS:
    if path.exists():
        sys.path.insert(0, str(path))
