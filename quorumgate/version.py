"""
quorumgate.version
------------------

Package semantic version.

- __version__: semantic version string (e.g., "0.1.0").
- version(): callable that returns the same value (cached).

Build systems may inject a full version string (with local build metadata)
through QUORUMGATE_VERSION.
"""

from __future__ import annotations

import functools
import os

# Bump this on intentional, user-visible releases/changes.
_SEMVER_BASE = "0.1.0"


@functools.lru_cache(maxsize=1)
def version() -> str:
    injected = os.getenv("QUORUMGATE_VERSION")
    if injected and injected.strip():
        return injected.strip()
    return _SEMVER_BASE


__version__ = version()

__all__ = ["__version__", "version"]
