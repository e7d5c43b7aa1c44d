"""
tests/unit/test_source_files.py

Every project module compiles cleanly.

Verifies:
✔ No invalid escape sequences (SyntaxWarning / DeprecationWarning) in any
  module, docstrings included
"""

import warnings
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
PACKAGES = ["generation", "forge", "services", "api", "infra"]


def project_sources():
    sources = [PROJECT_ROOT / "config.py", PROJECT_ROOT / "main.py"]
    for package in PACKAGES:
        sources.extend(sorted((PROJECT_ROOT / package).rglob("*.py")))
    return sources


@pytest.mark.parametrize("path", project_sources(), ids=lambda p: str(p.relative_to(PROJECT_ROOT)))
def test_compiles_without_warnings(path):
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(path.read_text(encoding="utf-8"), str(path), "exec")
