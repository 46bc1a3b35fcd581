from __future__ import annotations

import json
import logging

from ..domain import Snapshot
from ..settings import OutputFormat
from .formatter import format_snapshot_table

logger = logging.getLogger(__name__)


def publish_snapshot(
    snapshot: Snapshot,
    output_format: OutputFormat = OutputFormat.TABLE,
) -> None:
    """Publish a snapshot to stdout.

    Args:
        snapshot: The snapshot to publish
        output_format: TABLE for the rich dashboard, JSON for the wire shape
    """
    if snapshot.fallbacks:
        logger.warning(
            "Snapshot is %s; estimated items: %s",
            snapshot.status.value,
            ", ".join(snapshot.fallbacks),
        )

    if output_format == OutputFormat.JSON:
        print(json.dumps(snapshot.to_dict(), indent=2))
    else:
        format_snapshot_table(snapshot)
