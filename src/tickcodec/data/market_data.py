"""Market data structures and types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import (
    MAX_PREC,
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import Any

from tickcodec.constants import TickType

ZERO = Decimal("0")
TWO = Decimal("2")


def as_price(value: Decimal | int, name: str = "price") -> Decimal:
    """Coerce an exact numeric to Decimal, refusing binary floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    raise TypeError(f"{name} must be Decimal or int, got {type(value).__name__}")


def exact_context(*operands: Decimal):
    """
    Decimal context wide enough to add, multiply or halve the operands exactly.

    Precision is sized to the operands rather than the ambient context, and
    any rounding that still happens raises decimal.Inexact.
    """
    width = 0
    for op in operands:
        sign, digits, exponent = op.as_tuple()
        width += len(digits) + (abs(exponent) if isinstance(exponent, int) else 0)
    ctx = Context(
        prec=min(MAX_PREC, max(28, width + 2)),
        traps=[Inexact, InvalidOperation, DivisionByZero, Overflow],
    )
    return localcontext(ctx)


def midpoint(bid: Decimal, ask: Decimal) -> Decimal:
    """Return the bid/ask midpoint as bid + (ask - bid) / 2."""
    with exact_context(bid, ask, TWO):
        return bid + (ask - bid) / TWO


@dataclass
class TickRecord:
    """
    One observed trade print or quote update.

    ``tick_type`` decides which fields are meaningful: ``quantity`` for trades,
    ``bid_price``/``ask_price`` for quotes. The unused fields stay at zero.
    Records are treated as values; ``update()`` is the only sanctioned way
    to change prices after construction.
    """

    symbol: str = ""
    timestamp: datetime = datetime.min
    tick_type: TickType = TickType.TRADE
    value: Decimal = ZERO
    bid_price: Decimal = ZERO
    ask_price: Decimal = ZERO
    quantity: int = 0
    exchange: str = ""
    sale_condition: str = ""
    suspicious: bool = False

    def __post_init__(self) -> None:
        self.value = as_price(self.value, "value")
        self.bid_price = as_price(self.bid_price, "bid_price")
        self.ask_price = as_price(self.ask_price, "ask_price")
        if self.quantity < 0:
            raise ValueError(f"quantity must be non-negative, got: {self.quantity}")
        if self.bid_price < 0 or self.ask_price < 0:
            raise ValueError(
                f"bid/ask must be non-negative, got: {self.bid_price}/{self.ask_price}"
            )

    # ============================================
    # Factories
    # ============================================

    @classmethod
    def quote(
        cls, time: datetime, symbol: str, bid: Decimal | int, ask: Decimal | int
    ) -> TickRecord:
        """
        Build a quote with no last sale price.

        FX rarely has trade data, so the last price is the bid/ask midpoint.
        """
        bid = as_price(bid, "bid")
        ask = as_price(ask, "ask")
        return cls(
            symbol=symbol,
            timestamp=time,
            tick_type=TickType.QUOTE,
            value=midpoint(bid, ask),
            bid_price=bid,
            ask_price=ask,
        )

    @classmethod
    def quote_with_last(
        cls,
        time: datetime,
        symbol: str,
        last: Decimal | int,
        bid: Decimal | int,
        ask: Decimal | int,
    ) -> TickRecord:
        """Build a quote carrying an explicit last trade price.

        The record is labelled QUOTE even though a trade price is supplied.
        """
        return cls(
            symbol=symbol,
            timestamp=time,
            tick_type=TickType.QUOTE,
            value=as_price(last, "last"),
            bid_price=as_price(bid, "bid"),
            ask_price=as_price(ask, "ask"),
        )

    @classmethod
    def trade(
        cls,
        time: datetime,
        symbol: str,
        price: Decimal | int,
        quantity: int,
        exchange: str = "",
        sale_condition: str = "",
        suspicious: bool = False,
    ) -> TickRecord:
        """Build a trade print."""
        return cls(
            symbol=symbol,
            timestamp=time,
            tick_type=TickType.TRADE,
            value=as_price(price),
            quantity=quantity,
            exchange=exchange,
            sale_condition=sale_condition,
            suspicious=suspicious,
        )

    # ============================================
    # Mutation / copying
    # ============================================

    def update(
        self,
        last_trade: Decimal | int,
        bid_price: Decimal | int,
        ask_price: Decimal | int,
        volume: Decimal | int,
    ) -> None:
        """
        Overwrite price and quantity in place for feed replay.

        Args:
            last_trade: New last trade price.
            bid_price: Current bid.
            ask_price: Current ask.
            volume: Trade volume, truncated to an integer quantity.
        """
        quantity = int(as_price(volume, "volume"))
        bid = as_price(bid_price, "bid_price")
        ask = as_price(ask_price, "ask_price")
        if quantity < 0:
            raise ValueError(f"volume must be non-negative, got: {volume}")
        if bid < 0 or ask < 0:
            raise ValueError(f"bid/ask must be non-negative, got: {bid}/{ask}")

        self.value = as_price(last_trade, "last_trade")
        self.bid_price = bid
        self.ask_price = ask
        self.quantity = quantity

    def clone(self, keep_price: bool = False) -> TickRecord:
        """Return an independent copy (see tickcodec.data.cloner)."""
        from tickcodec.data.cloner import clone_tick

        return clone_tick(self, keep_price=keep_price)

    # ============================================
    # Views
    # ============================================

    @property
    def last_price(self) -> Decimal:
        """Alias for value: the last sale for this asset."""
        return self.value

    @property
    def is_trade(self) -> bool:
        return self.tick_type == TickType.TRADE

    @property
    def is_quote(self) -> bool:
        return self.tick_type == TickType.QUOTE

    @property
    def spread(self) -> Decimal:
        if not self.is_quote:
            return ZERO
        return self.ask_price - self.bid_price

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dict (Decimals as strings)."""
        return {
            "symbol": self.symbol,
            "timestamp": self.timestamp.isoformat(),
            "tick_type": self.tick_type.value,
            "value": str(self.value),
            "bid_price": str(self.bid_price),
            "ask_price": str(self.ask_price),
            "quantity": self.quantity,
            "exchange": self.exchange,
            "sale_condition": self.sale_condition,
            "suspicious": self.suspicious,
        }
