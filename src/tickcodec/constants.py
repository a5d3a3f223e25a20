"""Core constants for tickcodec."""

from decimal import Decimal
from enum import Enum


class SecurityType(str, Enum):
    """Instrument class governing which line grammar applies."""

    BASE = "base"
    EQUITY = "equity"
    OPTION = "option"
    COMMODITY = "commodity"
    FOREX = "forex"
    FUTURE = "future"


class Resolution(str, Enum):
    """Time granularity of a source file."""

    TICK = "tick"
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAILY = "daily"


class TickType(str, Enum):
    """Trade print or quote update."""

    TRADE = "trade"
    QUOTE = "quote"


class FeedMode(str, Enum):
    """Where data originates from."""

    FILE_SYSTEM = "file_system"
    BACKTESTING = "backtesting"
    LIVE_TRADING = "live_trading"


class DecodeErrorKind(str, Enum):
    """Kinds of decode failure."""

    MALFORMED_LINE = "malformed_line"
    UNSUPPORTED_SECURITY_TYPE = "unsupported_security_type"
    UNRESOLVED_SOURCE = "unresolved_source"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ============================================
# Wire Formats
# ============================================

# Equity prices are stored as integers scaled by 10000
EQUITY_PRICE_DIVISOR = Decimal("10000")
EQUITY_MIN_COLUMNS = 3
EQUITY_FULL_COLUMNS = 6
SUSPICIOUS_FLAG = "1"

FOREX_TIME_FORMAT = "%Y%m%d %H:%M:%S.%f"
FOREX_MIN_COLUMNS = 3

# Stands in for bytes that were not valid text when the source was read
REPLACEMENT_CHARACTER = "\ufffd"

EQUITY_DATE_FORMAT = "%Y%m%d"
FOREX_DATE_FORMAT = "%y%m%d"

# ============================================
# Default Values
# ============================================

DEFAULT_DATA_ROOT = "../../../Data"
DEFAULT_ARCHIVE_EXTENSION = "zip"
DEFAULT_MAX_WORKERS = 1
DEFAULT_MAX_FAILURES_RETAINED = 10000

# ============================================
# Application Constants
# ============================================

APP_NAME = "tickcodec"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
