"""Test environment wiring.

Makes the repository root importable so the ``wlruler`` package resolves
without an editable install.
"""

# pylint: disable=missing-function-docstring
from pathlib import Path
from sys import path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in path:
    path.insert(0, str(ROOT))
