from __future__ import annotations

from .formatter import format_snapshot_table
from .publisher import publish_snapshot

__all__ = ["format_snapshot_table", "publish_snapshot"]
