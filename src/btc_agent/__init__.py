"""btc-agent — manage Bitcoin addresses derived from one extended public key."""

from __future__ import annotations

__version__ = "0.1.0"
