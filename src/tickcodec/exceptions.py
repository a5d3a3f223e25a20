"""Decode error types."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tickcodec.constants import DecodeErrorKind, FeedMode, SecurityType

if TYPE_CHECKING:
    from tickcodec.data.results import DecodeFailure


class TickDecodeError(Exception):
    """Base class for tick decoding errors."""

    kind: DecodeErrorKind

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.message = message
        self.line = line

    def to_failure(self, line_number: int | None = None) -> DecodeFailure:
        """Convert to a DecodeFailure value."""
        from tickcodec.data.results import DecodeFailure

        return DecodeFailure(
            kind=self.kind,
            line=self.line,
            message=self.message,
            line_number=line_number,
        )


class MalformedLineError(TickDecodeError):
    """Wrong column count or an unparsable token."""

    kind = DecodeErrorKind.MALFORMED_LINE


class UnsupportedSecurityTypeError(TickDecodeError):
    """No line grammar exists for the security type."""

    kind = DecodeErrorKind.UNSUPPORTED_SECURITY_TYPE

    def __init__(self, security_type: SecurityType | str, line: str = ""):
        name = getattr(security_type, "value", security_type)
        super().__init__(f"No line grammar for security type '{name}'", line)
        self.security_type = security_type


class UnresolvedSourceError(TickDecodeError):
    """Feed mode yields no source path where one was expected."""

    kind = DecodeErrorKind.UNRESOLVED_SOURCE

    def __init__(self, security_type: SecurityType, feed_mode: FeedMode):
        super().__init__(
            f"No file-backed source for {security_type.value} in feed mode '{feed_mode.value}'"
        )
        self.security_type = security_type
        self.feed_mode = feed_mode
