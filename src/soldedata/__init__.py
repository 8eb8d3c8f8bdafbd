"""soldedata — resilient mobile-data balance extraction from the MTN CI portal."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("soldedata")
except Exception:
    __version__ = "0.0.0"
