"""
Single source of version: read from repo root VERSION file.
Served by GET /api/v1/meta/version and used as the OpenAPI version.
"""

from __future__ import annotations

import re
from pathlib import Path

# major.minor.patch with optional -pre
SEMVER_PATTERN = re.compile(r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$")


def _version_file_path() -> Path:
    # backend/version.py -> repo root
    return Path(__file__).resolve().parent.parent / "VERSION"


def get_version() -> str:
    """Return version string from VERSION file, or '0.0.0' if missing or not semver."""
    path = _version_file_path()
    if not path.is_file():
        return "0.0.0"
    try:
        lines = path.read_text(encoding="utf-8").strip().splitlines()
    except OSError:
        return "0.0.0"
    first = lines[0].strip() if lines else ""
    return first if is_semver(first) else "0.0.0"


def is_semver(s: str) -> bool:
    return bool(s and SEMVER_PATTERN.match(s.strip()))
