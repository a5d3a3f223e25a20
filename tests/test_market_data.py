"""Tests for TickRecord construction and update."""

from datetime import datetime
from decimal import Decimal, Inexact, localcontext

import pytest

from tickcodec.constants import TickType
from tickcodec.data.market_data import TickRecord, exact_context, midpoint


@pytest.fixture
def ts():
    return datetime(2020, 1, 2, 9, 30, 0, 125000)


class TestDefaults:
    def test_default_record(self):
        tick = TickRecord()
        assert tick.symbol == ""
        assert tick.tick_type == TickType.TRADE
        assert tick.value == Decimal("0")
        assert tick.bid_price == Decimal("0")
        assert tick.ask_price == Decimal("0")
        assert tick.quantity == 0
        assert tick.exchange == ""
        assert tick.sale_condition == ""
        assert tick.suspicious is False

    def test_float_price_rejected(self, ts):
        with pytest.raises(TypeError, match="Decimal"):
            TickRecord(symbol="SPY", timestamp=ts, value=1.5)

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            TickRecord(quantity=-1)

    def test_negative_bid_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            TickRecord(bid_price=Decimal("-0.01"))


class TestQuoteFactories:
    def test_quote_midpoint(self, ts):
        tick = TickRecord.quote(ts, "EURUSD", Decimal("1.10010"), Decimal("1.10030"))
        assert tick.tick_type == TickType.QUOTE
        assert tick.value == Decimal("1.10020")
        assert tick.value == tick.bid_price + (tick.ask_price - tick.bid_price) / 2
        assert tick.quantity == 0

    def test_quote_midpoint_odd_spread_is_exact(self, ts):
        """A spread of one pip still halves exactly in Decimal."""
        tick = TickRecord.quote(ts, "USDJPY", Decimal("108.123"), Decimal("108.124"))
        assert tick.value == Decimal("108.1235")

    def test_quote_with_last_is_labelled_quote(self, ts):
        tick = TickRecord.quote_with_last(
            ts, "SPY", Decimal("321.50"), Decimal("321.49"), Decimal("321.52")
        )
        assert tick.tick_type == TickType.QUOTE
        assert tick.value == Decimal("321.50")
        assert tick.last_price == Decimal("321.50")
        assert tick.spread == Decimal("0.03")

    def test_quote_accepts_int_prices(self, ts):
        tick = TickRecord.quote(ts, "X", 10, 12)
        assert tick.value == Decimal("11")

    def test_quote_rejects_float(self, ts):
        with pytest.raises(TypeError):
            TickRecord.quote(ts, "EURUSD", 1.1, 1.2)

    def test_midpoint_helper(self):
        assert midpoint(Decimal("1"), Decimal("2")) == Decimal("1.5")

    def test_midpoint_wider_than_ambient_precision(self):
        with localcontext() as ctx:
            ctx.prec = 4
            assert midpoint(Decimal("1.00001"), Decimal("1.00004")) == Decimal("1.000025")

    def test_exact_context_traps_rounding(self):
        with exact_context(Decimal("1"), Decimal("3")):
            with pytest.raises(Inexact):
                Decimal("1") / Decimal("3")


class TestTradeFactory:
    def test_trade(self, ts):
        tick = TickRecord.trade(ts, "AAPL", Decimal("300.1"), 200, exchange="Q", sale_condition="@")
        assert tick.is_trade
        assert not tick.is_quote
        assert tick.quantity == 200
        assert tick.exchange == "Q"
        assert tick.spread == Decimal("0")


class TestUpdate:
    def test_update_overwrites_prices_only(self, ts):
        tick = TickRecord.trade(ts, "AAPL", Decimal("300"), 10, exchange="N", sale_condition="F")

        result = tick.update(Decimal("301.25"), Decimal("301.20"), Decimal("301.30"), Decimal("57.9"))

        assert result is None
        assert tick.value == Decimal("301.25")
        assert tick.bid_price == Decimal("301.20")
        assert tick.ask_price == Decimal("301.30")
        assert tick.quantity == 57
        assert tick.symbol == "AAPL"
        assert tick.timestamp == ts
        assert tick.exchange == "N"
        assert tick.sale_condition == "F"

    def test_update_rejects_negative_volume(self, ts):
        tick = TickRecord.trade(ts, "AAPL", Decimal("300"), 10)
        with pytest.raises(ValueError):
            tick.update(Decimal("1"), Decimal("1"), Decimal("1"), -5)
        assert tick.quantity == 10

    def test_update_rejects_float(self, ts):
        tick = TickRecord.trade(ts, "AAPL", Decimal("300"), 10)
        with pytest.raises(TypeError):
            tick.update(301.0, Decimal("1"), Decimal("1"), 1)


class TestToDict:
    def test_decimals_serialized_as_strings(self, ts):
        tick = TickRecord.quote(ts, "EURUSD", Decimal("1.1"), Decimal("1.2"))
        data = tick.to_dict()
        assert data["value"] == "1.15"
        assert data["tick_type"] == "quote"
        assert data["timestamp"] == "2020-01-02T09:30:00.125000"
