"""Map subscriptions to canonical source archive paths.

Pure path construction only: nothing here touches the filesystem.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from tickcodec.constants import (
    DEFAULT_ARCHIVE_EXTENSION,
    DEFAULT_DATA_ROOT,
    EQUITY_DATE_FORMAT,
    FOREX_DATE_FORMAT,
    FeedMode,
    Resolution,
    SecurityType,
    TickType,
)
from tickcodec.exceptions import UnresolvedSourceError

if TYPE_CHECKING:
    from tickcodec.config_loader import EnvironmentConfig, SubscriptionConfig


def source_tick_type(security_type: SecurityType) -> TickType:
    """Forex files hold quotes; every other security type stores trades."""
    if security_type == SecurityType.FOREX:
        return TickType.QUOTE
    return TickType.TRADE


def source_date_format(security_type: SecurityType) -> str:
    if security_type == SecurityType.FOREX:
        return FOREX_DATE_FORMAT
    return EQUITY_DATE_FORMAT


def resolve(
    security_type: SecurityType,
    resolution: Resolution,
    mapped_symbol: str,
    day: date,
    feed_mode: FeedMode,
    data_root: str = DEFAULT_DATA_ROOT,
    archive_extension: str = DEFAULT_ARCHIVE_EXTENSION,
) -> str:
    """
    Build the source path for one subscription day.

    Args:
        security_type: Instrument class.
        resolution: File granularity.
        mapped_symbol: Symbol as named on storage.
        day: Trading date of the file.
        feed_mode: Where data comes from.
        data_root: Root directory prepended to the path.
        archive_extension: Extension of the archive files.

    Returns:
        ``<root>/<type>/<resolution>/<symbol>/<date>_<ticktype>.<ext>``, or an
        empty string in live mode (no file-backed source).
    """
    if feed_mode == FeedMode.LIVE_TRADING:
        return ""

    root = data_root.rstrip("/")
    tick_type = source_tick_type(security_type)
    date_str = day.strftime(source_date_format(security_type))
    ext = archive_extension.lstrip(".")

    return (
        f"{root}/{security_type.value.lower()}/{resolution.value.lower()}"
        f"/{mapped_symbol.lower()}/{date_str}_{tick_type.value.lower()}.{ext}"
    )


def resolve_subscription(
    subscription: SubscriptionConfig,
    day: date,
    feed_mode: FeedMode,
    environment: EnvironmentConfig | None = None,
) -> str:
    """Resolve using a subscription and the configured data root and extension."""
    data_root, archive_extension = DEFAULT_DATA_ROOT, DEFAULT_ARCHIVE_EXTENSION
    if environment is not None:
        data_root, archive_extension = environment.data_root, environment.archive_extension
    return resolve(
        subscription.security_type,
        subscription.resolution,
        subscription.mapped_symbol,
        day,
        feed_mode,
        data_root=data_root,
        archive_extension=archive_extension,
    )


def require_source(
    security_type: SecurityType,
    resolution: Resolution,
    mapped_symbol: str,
    day: date,
    feed_mode: FeedMode,
    data_root: str = DEFAULT_DATA_ROOT,
    archive_extension: str = DEFAULT_ARCHIVE_EXTENSION,
) -> str:
    """
    Like resolve(), for callers that need a file-backed source.

    Raises:
        UnresolvedSourceError: If the feed mode has no source path.
    """
    source = resolve(
        security_type,
        resolution,
        mapped_symbol,
        day,
        feed_mode,
        data_root=data_root,
        archive_extension=archive_extension,
    )
    if not source:
        raise UnresolvedSourceError(security_type, feed_mode)
    return source
