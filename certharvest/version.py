"""Version helpers for certharvest."""

from __future__ import annotations

__version__ = "1.0.0"
USER_AGENT = f"certharvest/{__version__}"
