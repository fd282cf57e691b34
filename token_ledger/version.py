"""token_ledger.version: semantic version with env / metadata overrides.

This module exposes:
- __version__: a PEP 440-compliant version string
- compute_version(): resolution order → env → package metadata → fallback

Environment override:
- TOKEN_LEDGER_VERSION (used verbatim)
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import metadata as importlib_metadata
from typing import Optional

BASE_VERSION = "0.1.0"
DIST_NAME = "token-ledger"


def _pkg_metadata_version(dist_name: str = DIST_NAME) -> Optional[str]:
    """Installed distribution version, or None when running from a checkout."""
    try:
        v = importlib_metadata.version(dist_name)
    except importlib_metadata.PackageNotFoundError:
        return None
    return v if v and v != "0.0.0" else None


@lru_cache(maxsize=1)
def compute_version() -> str:
    """
    Resolve a version string with this precedence:
      1) TOKEN_LEDGER_VERSION (exact value)
      2) Installed package metadata version
      3) BASE_VERSION + '+dev'
    """
    env = os.getenv("TOKEN_LEDGER_VERSION")
    if env:
        return env
    return _pkg_metadata_version() or f"{BASE_VERSION}+dev"


__version__ = compute_version()

__all__ = ["__version__", "BASE_VERSION", "compute_version"]
