"""Decode result containers."""

from __future__ import annotations

from dataclasses import dataclass, field

from tickcodec.constants import DecodeErrorKind
from tickcodec.data.market_data import TickRecord


@dataclass(frozen=True)
class DecodeFailure:
    """Why a line could not be turned into a tick."""

    kind: DecodeErrorKind
    line: str
    message: str
    line_number: int | None = None

    def with_line_number(self, line_number: int) -> DecodeFailure:
        return DecodeFailure(self.kind, self.line, self.message, line_number)

    def __str__(self) -> str:
        prefix = f"line {self.line_number}: " if self.line_number is not None else ""
        return f"{prefix}{self.message}"


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of decoding one line.

    A malformed line still carries a default record so batch counts are
    preserved; an unsupported security type carries no record at all.
    """

    record: TickRecord | None
    failure: DecodeFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, record: TickRecord) -> DecodeResult:
        return cls(record=record)

    @classmethod
    def malformed(cls, failure: DecodeFailure) -> DecodeResult:
        return cls(record=TickRecord(), failure=failure)

    @classmethod
    def unsupported(cls, failure: DecodeFailure) -> DecodeResult:
        return cls(record=None, failure=failure)


@dataclass
class BatchResult:
    """Records and failures from decoding a sequence of lines, in source order."""

    records: list[TickRecord] = field(default_factory=list)
    failures: list[tuple[int, DecodeFailure]] = field(default_factory=list)
    # Source line number of each entry in records
    record_lines: list[int] = field(default_factory=list, repr=False)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def valid_records(self) -> list[TickRecord]:
        """Records from lines that decoded cleanly."""
        failed = {n for n, _ in self.failures}
        return [r for n, r in zip(self.record_lines, self.records) if n not in failed]

    def add(self, line_number: int, result: DecodeResult) -> None:
        if result.record is not None:
            self.records.append(result.record)
            self.record_lines.append(line_number)
        if result.failure is not None:
            self.failures.append((line_number, result.failure.with_line_number(line_number)))

    def summary(self) -> str:
        return f"Decoded {len(self.records)} records, {len(self.failures)} failures"
