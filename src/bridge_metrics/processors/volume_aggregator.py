from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from ..constants import WINDOW_DURATIONS
from ..errors import ValidationError


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else None


def _usd_amount(operation: Mapping[str, Any]) -> Decimal | None:
    raw = operation.get("usdAmount")
    if raw is None and isinstance(operation.get("data"), Mapping):
        raw = operation["data"].get("usdAmount")
    if raw is None:
        return None
    try:
        amount = Decimal(str(raw))
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def _timestamp(operation: Mapping[str, Any]) -> datetime | None:
    ts = _parse_timestamp(operation.get("timestamp"))
    if ts is None and isinstance(operation.get("sourceChain"), Mapping):
        ts = _parse_timestamp(operation["sourceChain"].get("timestamp"))
    return ts


def aggregate_operations_volume(
    operations: Iterable[Any], window: str, now: datetime
) -> Decimal:
    """Sum the USD amount of transfer operations that fall inside ``window``.

    Operations without a parseable timestamp or USD amount are skipped, as
    are operations stamped in the future.

    Raises:
        ValidationError: If ``window`` is not a supported window.
    """
    if window not in WINDOW_DURATIONS:
        raise ValidationError(f"Unsupported volume window {window!r}")
    horizon = WINDOW_DURATIONS[window]

    total = Decimal(0)
    for operation in operations:
        if not isinstance(operation, Mapping):
            continue
        ts = _timestamp(operation)
        amount = _usd_amount(operation)
        if ts is None or amount is None:
            continue
        age = now - ts
        if age.total_seconds() < 0 or age > horizon:
            continue
        total += amount
    return total
