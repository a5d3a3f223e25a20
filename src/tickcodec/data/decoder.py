"""Line decoder: raw tick lines to TickRecords.

Each security type maps to one column grammar in GRAMMARS. The table must
name every SecurityType, either with a grammar or with None for types that
have no line format; the module refuses to import otherwise.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from tickcodec.constants import (
    EQUITY_FULL_COLUMNS,
    EQUITY_MIN_COLUMNS,
    EQUITY_PRICE_DIVISOR,
    FOREX_MIN_COLUMNS,
    FOREX_TIME_FORMAT,
    REPLACEMENT_CHARACTER,
    SUSPICIOUS_FLAG,
    FeedMode,
    SecurityType,
)
from tickcodec.data.diagnostics import DiagnosticSink, get_default_sink
from tickcodec.data.market_data import TickRecord, as_price, exact_context
from tickcodec.data.results import BatchResult, DecodeResult
from tickcodec.exceptions import MalformedLineError, UnsupportedSecurityTypeError

if TYPE_CHECKING:
    from tickcodec.config_loader import SubscriptionConfig

logger = logging.getLogger(__name__)

Grammar = Callable[[list[str], str, datetime, Decimal, str], TickRecord]

_INT_RE = re.compile(r"^[+-]?\d+$")
# yyyyMMdd HH:mm:ss.ffff
_FOREX_TIME_RE = re.compile(r"^\d{8} \d{2}:\d{2}:\d{2}\.\d{4}$")


# ============================================
# Token parsing
# ============================================


def _parse_int(token: str, name: str, line: str) -> int:
    token = token.strip()
    if not _INT_RE.match(token):
        raise MalformedLineError(f"Invalid {name}: {token!r}", line)
    return int(token)


def _parse_decimal(token: str, name: str, line: str) -> Decimal:
    token = token.strip()
    try:
        value = Decimal(token)
    except InvalidOperation:
        raise MalformedLineError(f"Invalid {name}: {token!r}", line) from None
    if not value.is_finite():
        raise MalformedLineError(f"Invalid {name}: {token!r}", line)
    if value < 0:
        raise MalformedLineError(f"Negative {name}: {token!r}", line)
    return value


def _midnight(base_date: date) -> datetime:
    if isinstance(base_date, datetime):
        return datetime.combine(base_date.date(), time.min, tzinfo=base_date.tzinfo)
    return datetime.combine(base_date, time.min)


# ============================================
# Grammars
# ============================================


def _decode_equity(
    columns: list[str], line: str, base_date: datetime, scale: Decimal, symbol: str
) -> TickRecord:
    """msOffset,scaledPrice,volume[,exchange,saleCondition,suspicious]"""
    count = len(columns)
    if count < EQUITY_MIN_COLUMNS or EQUITY_MIN_COLUMNS < count < EQUITY_FULL_COLUMNS:
        raise MalformedLineError(
            f"Equity line needs {EQUITY_MIN_COLUMNS} or {EQUITY_FULL_COLUMNS} columns, "
            f"got {count}",
            line,
        )

    offset_ms = _parse_int(columns[0], "millisecond offset", line)
    if offset_ms < 0:
        raise MalformedLineError(f"Negative millisecond offset: {offset_ms}", line)
    scaled_price = _parse_int(columns[1], "scaled price", line)
    if scaled_price < 0:
        raise MalformedLineError(f"Negative scaled price: {scaled_price}", line)
    quantity = _parse_int(columns[2], "volume", line)
    if quantity < 0:
        raise MalformedLineError(f"Negative volume: {quantity}", line)

    try:
        timestamp = _midnight(base_date) + timedelta(milliseconds=offset_ms)
    except ArithmeticError as e:
        raise MalformedLineError(f"Timestamp out of range: {e}", line) from e

    price = Decimal(scaled_price)
    try:
        with exact_context(price, EQUITY_PRICE_DIVISOR, scale):
            value = (price / EQUITY_PRICE_DIVISOR) * scale
    except ArithmeticError as e:
        raise MalformedLineError(f"Value not exactly representable: {e!r}", line) from e

    exchange = sale_condition = ""
    suspicious = False
    if count > EQUITY_MIN_COLUMNS:
        exchange = columns[3]
        sale_condition = columns[4]
        suspicious = columns[5].strip() == SUSPICIOUS_FLAG

    return TickRecord.trade(
        timestamp,
        symbol,
        value,
        quantity,
        exchange=exchange,
        sale_condition=sale_condition,
        suspicious=suspicious,
    )


def _decode_forex(
    columns: list[str], line: str, base_date: datetime, scale: Decimal, symbol: str
) -> TickRecord:
    """yyyyMMdd HH:mm:ss.ffff,bid,ask -- the line carries its own full timestamp."""
    if len(columns) < FOREX_MIN_COLUMNS:
        raise MalformedLineError(
            f"Forex line needs {FOREX_MIN_COLUMNS} columns, got {len(columns)}", line
        )

    ts_token = columns[0].strip()
    if not _FOREX_TIME_RE.match(ts_token):
        raise MalformedLineError(f"Invalid forex timestamp: {ts_token!r}", line)
    try:
        timestamp = datetime.strptime(ts_token, FOREX_TIME_FORMAT)
    except ValueError:
        raise MalformedLineError(f"Invalid forex timestamp: {ts_token!r}", line) from None

    bid = _parse_decimal(columns[1], "bid", line)
    ask = _parse_decimal(columns[2], "ask", line)
    try:
        return TickRecord.quote(timestamp, symbol, bid, ask)
    except ArithmeticError as e:
        raise MalformedLineError(f"Midpoint not exactly representable: {e!r}", line) from e


GRAMMARS: dict[SecurityType, Grammar | None] = {
    SecurityType.EQUITY: _decode_equity,
    SecurityType.FOREX: _decode_forex,
    SecurityType.BASE: None,
    SecurityType.OPTION: None,
    SecurityType.COMMODITY: None,
    SecurityType.FUTURE: None,
}

_unlisted = set(SecurityType) - GRAMMARS.keys()
if _unlisted:
    raise RuntimeError(
        f"Decoder grammar table is missing security types: {sorted(s.value for s in _unlisted)}"
    )


def supported_security_types() -> list[SecurityType]:
    """Security types that have a line grammar."""
    return [s for s, grammar in GRAMMARS.items() if grammar is not None]


# ============================================
# Public API
# ============================================


def decode_or_raise(
    security_type: SecurityType,
    raw_line: str,
    base_date: date,
    price_scale_factor: Decimal | int,
    symbol: str = "",
) -> TickRecord:
    """
    Decode one line, raising on any failure.

    Raises:
        UnsupportedSecurityTypeError: If the security type has no grammar.
        MalformedLineError: If the line does not fit the grammar.
    """
    line = raw_line.rstrip("\r\n")
    grammar = GRAMMARS.get(security_type)
    if grammar is None:
        raise UnsupportedSecurityTypeError(security_type, line)
    if REPLACEMENT_CHARACTER in line:
        raise MalformedLineError("Line contains undecodable bytes", line)

    scale = as_price(price_scale_factor, "price_scale_factor")
    return grammar(line.split(","), line, base_date, scale, symbol)


def decode(
    security_type: SecurityType,
    raw_line: str,
    base_date: date,
    price_scale_factor: Decimal | int,
    symbol: str = "",
    *,
    sink: DiagnosticSink | None = None,
    line_number: int | None = None,
) -> DecodeResult:
    """
    Decode one line without raising.

    A malformed line yields a default TickRecord plus a MALFORMED_LINE
    failure; an unsupported security type yields no record and an
    UNSUPPORTED_SECURITY_TYPE failure. Failures are also reported to the sink.

    Args:
        security_type: Selects the column grammar.
        raw_line: One line of source text.
        base_date: Trading date for grammars that store a time-of-day offset.
        price_scale_factor: Multiplier applied to decoded equity prices.
        symbol: Symbol stamped onto the record.
        sink: Diagnostic sink; the process default when None.
        line_number: Source line number recorded on any failure.

    Returns:
        DecodeResult with the record and/or failure.
    """
    sink = sink if sink is not None else get_default_sink()
    try:
        record = decode_or_raise(security_type, raw_line, base_date, price_scale_factor, symbol)
    except UnsupportedSecurityTypeError as e:
        failure = e.to_failure(line_number)
        sink.report(failure)
        return DecodeResult.unsupported(failure)
    except MalformedLineError as e:
        failure = e.to_failure(line_number)
        sink.report(failure)
        return DecodeResult.malformed(failure)

    return DecodeResult.success(record)


def decode_forex_line(symbol: str, raw_line: str) -> TickRecord:
    """
    Decode an FXCM forex line without a subscription.

    Raises:
        MalformedLineError: If the line does not fit the forex grammar.
    """
    return decode_or_raise(SecurityType.FOREX, raw_line, date.min, Decimal("1"), symbol)


def read(
    subscription: SubscriptionConfig,
    raw_line: str,
    base_date: date,
    feed_mode: FeedMode,
    sink: DiagnosticSink | None = None,
) -> DecodeResult:
    """
    Read one line for a subscription, honouring the feed mode.

    File-backed modes decode the line; live trading has no line format
    and yields a default record without parsing.
    """
    if feed_mode == FeedMode.LIVE_TRADING:
        logger.debug(f"Live feed for {subscription.symbol}: line not decoded")
        return DecodeResult.success(TickRecord())

    return decode(
        subscription.security_type,
        raw_line,
        base_date,
        subscription.price_scale_factor,
        subscription.symbol,
        sink=sink,
    )


def decode_lines(
    lines: Iterable[str],
    subscription: SubscriptionConfig,
    base_date: date,
    max_workers: int = 1,
    sink: DiagnosticSink | None = None,
) -> BatchResult:
    """
    Decode a file's worth of lines.

    Lines may be decoded across worker threads; the result is always in
    source order. Blank lines are skipped. Line numbers are 1-based.

    Args:
        lines: Source lines.
        subscription: Supplies security type, symbol and price scale factor.
        base_date: Trading date of the file.
        max_workers: Decoder threads; 1 decodes inline.
        sink: Diagnostic sink for failures.

    Returns:
        BatchResult with one record per non-blank line (default records for
        malformed lines) and the (line_number, failure) pairs.
    """
    numbered = [(n, line) for n, line in enumerate(lines, start=1) if line.strip()]

    def work(item: tuple[int, str]) -> tuple[int, DecodeResult]:
        n, line = item
        return n, decode(
            subscription.security_type,
            line,
            base_date,
            subscription.price_scale_factor,
            subscription.symbol,
            sink=sink,
            line_number=n,
        )

    if max_workers > 1 and len(numbered) > 1:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="decoder") as executor:
            results = list(executor.map(work, numbered))
    else:
        results = [work(item) for item in numbered]

    batch = BatchResult()
    for n, result in results:
        batch.add(n, result)

    logger.info(f"{subscription.symbol} {base_date}: {batch.summary()}")
    return batch
