"""Record cloning for fill-forward."""

from __future__ import annotations

from datetime import datetime

from tickcodec.data.market_data import TickRecord

# Fields a clone inherits from its source. value/tick_type are left out unless
# keep_price is requested.
CLONED_FIELDS = (
    "symbol",
    "timestamp",
    "bid_price",
    "ask_price",
    "exchange",
    "sale_condition",
    "quantity",
    "suspicious",
)


def _copy_timestamp(ts: datetime) -> datetime:
    return datetime(
        ts.year,
        ts.month,
        ts.day,
        ts.hour,
        ts.minute,
        ts.second,
        ts.microsecond,
        tzinfo=ts.tzinfo,
        fold=ts.fold,
    )


def clone_tick(original: TickRecord, keep_price: bool = False) -> TickRecord:
    """
    Clone a tick into a new, independent record.

    Args:
        original: Tick to copy.
        keep_price: Also carry value and tick_type. Off by default, so a
            clone starts as a zero-valued TRADE with the source's other fields.

    Returns:
        New TickRecord sharing no state with the original.
    """
    clone = TickRecord(
        symbol=original.symbol,
        timestamp=_copy_timestamp(original.timestamp),
        bid_price=original.bid_price,
        ask_price=original.ask_price,
        exchange=original.exchange,
        sale_condition=original.sale_condition,
        quantity=original.quantity,
        suspicious=original.suspicious,
    )
    if keep_price:
        clone.value = original.value
        clone.tick_type = original.tick_type
    return clone


def copied_fields_equal(a: TickRecord, b: TickRecord) -> bool:
    """Compare two records on the fields a clone inherits."""
    return all(getattr(a, name) == getattr(b, name) for name in CLONED_FIELDS)
