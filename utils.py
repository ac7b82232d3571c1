"""Utility helpers for dates, money rounding and in-memory transaction filtering."""
import datetime as dt
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

CENT = Decimal("0.01")


def utcnow() -> dt.datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def round_money(value: Any) -> Decimal:
    """Round to 2 decimal places with HALF_UP (normal money rounding)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_float(value: Any) -> float:
    return float(round_money(value))


def to_naive_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)


def normalize_iso_datetime(value: Any) -> dt.datetime:
    """Normalize a value to a naive UTC datetime or raise a ValueError.

    Accepts datetime and date instances, ``YYYY-MM-DD`` strings (midnight) and
    full ISO 8601 strings, including a trailing ``Z``.
    """
    if isinstance(value, dt.datetime):
        return to_naive_utc(value)

    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)

    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            return to_naive_utc(dt.datetime.fromisoformat(raw))
        except ValueError:
            raise ValueError("Invalid date format. Expected an ISO 8601 date or datetime.")

    raise ValueError("Invalid date format. Expected an ISO 8601 date or datetime.")


def filter_transactions(
    transactions: Iterable[Any],
    date_from: Optional[dt.datetime] = None,
    date_to: Optional[dt.datetime] = None,
    tx_type: Optional[str] = None,
) -> list[Any]:
    """Filter transactions by an inclusive created_at window and by type."""
    date_from = to_naive_utc(date_from)
    date_to = to_naive_utc(date_to)
    results: list[Any] = []

    for t in transactions:
        if tx_type and t.type != tx_type:
            continue
        created_at = to_naive_utc(t.created_at)
        if date_from and created_at < date_from:
            continue
        if date_to and created_at > date_to:
            continue
        results.append(t)

    return results
