from __future__ import annotations

from .health import ping
from .run import run_snapshot

__all__ = ["ping", "run_snapshot"]
