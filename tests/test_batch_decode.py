"""Tests for batch decoding and the diagnostic sink."""

import threading
from datetime import date
from decimal import Decimal

import pytest

from tickcodec.config_loader import SubscriptionConfig
from tickcodec.constants import DecodeErrorKind, SecurityType
from tickcodec.data.decoder import decode_lines
from tickcodec.data.diagnostics import DiagnosticSink, get_default_sink
from tickcodec.data.market_data import TickRecord
from tickcodec.data.results import DecodeFailure

BASE_DATE = date(2020, 1, 2)


@pytest.fixture
def equity_sub():
    return SubscriptionConfig(symbol="AAPL", security_type="equity")


@pytest.fixture
def sink():
    return DiagnosticSink()


def _equity_lines(count: int) -> list[str]:
    return [f"{34200000 + i},{3000000 + i},{i + 1}" for i in range(count)]


class TestDecodeLines:
    def test_corrupt_line_does_not_halt_batch(self, equity_sub, sink):
        lines = ["34200000,3001500,100", "34200001,3001600", "34200002,3001700,300"]

        batch = decode_lines(lines, equity_sub, BASE_DATE, sink=sink)

        assert len(batch.records) == 3
        assert batch.records[0].value == Decimal("300.15")
        assert batch.records[1] == TickRecord()
        assert batch.records[2].value == Decimal("300.17")
        assert batch.records[2].quantity == 300

        assert len(batch.failures) == 1
        line_number, failure = batch.failures[0]
        assert line_number == 2
        assert failure.kind == DecodeErrorKind.MALFORMED_LINE
        assert failure.line_number == 2
        assert not batch.ok
        assert [r.quantity for r in batch.valid_records] == [100, 300]

    def test_blank_lines_skipped(self, equity_sub, sink):
        lines = ["", "0,10000,1", "   ", "1,10000,2"]
        batch = decode_lines(lines, equity_sub, BASE_DATE, sink=sink)
        assert len(batch.records) == 2
        assert batch.record_lines == [2, 4]
        assert batch.ok

    def test_parallel_preserves_source_order(self, equity_sub, sink):
        lines = _equity_lines(500)
        lines[123] = "bad,line"
        lines[400] = "also bad"

        batch = decode_lines(lines, equity_sub, BASE_DATE, max_workers=8, sink=sink)

        assert len(batch.records) == 500
        assert [n for n, _ in batch.failures] == [124, 401]
        good = [r.quantity for i, r in enumerate(batch.records) if i not in (123, 400)]
        expected = [i + 1 for i in range(500) if i not in (123, 400)]
        assert good == expected
        assert len(sink) == 2

    def test_parallel_matches_sequential(self, equity_sub):
        lines = _equity_lines(200)
        seq = decode_lines(lines, equity_sub, BASE_DATE, sink=DiagnosticSink())
        par = decode_lines(lines, equity_sub, BASE_DATE, max_workers=4, sink=DiagnosticSink())
        assert seq.records == par.records

    def test_unsupported_type_yields_no_records(self, sink):
        sub = SubscriptionConfig(symbol="ES", security_type=SecurityType.FUTURE)
        batch = decode_lines(["1,2,3", "4,5,6"], sub, BASE_DATE, sink=sink)
        assert batch.records == []
        assert [f.kind for _, f in batch.failures] == [
            DecodeErrorKind.UNSUPPORTED_SECURITY_TYPE
        ] * 2

    def test_summary(self, equity_sub, sink):
        batch = decode_lines(["0,10000,1", "x"], equity_sub, BASE_DATE, sink=sink)
        assert batch.summary() == "Decoded 2 records, 1 failures"


class TestDiagnosticSink:
    def _failure(self, n: int) -> DecodeFailure:
        return DecodeFailure(DecodeErrorKind.MALFORMED_LINE, f"line{n}", "bad", n)

    def test_bounded_retention(self):
        sink = DiagnosticSink(max_size=3)
        for n in range(5):
            sink.report(self._failure(n))
        assert [f.line_number for f in sink.failures()] == [2, 3, 4]
        assert sink.total_reported == 5

    def test_clear(self):
        sink = DiagnosticSink()
        sink.report(self._failure(1))
        sink.clear()
        assert len(sink) == 0
        assert sink.total_reported == 0

    def test_concurrent_reports(self):
        sink = DiagnosticSink()

        def worker(base: int) -> None:
            for n in range(100):
                sink.report(self._failure(base + n))

        threads = [threading.Thread(target=worker, args=(i * 100,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(sink) == 800
        assert sink.total_reported == 800

    def test_total_reported_waits_for_pending_report(self):
        sink = DiagnosticSink()
        seen = []
        reader = threading.Thread(target=lambda: seen.append(sink.total_reported))

        with sink._lock:
            reader.start()
            reader.join(timeout=0.1)
            assert reader.is_alive()
            sink._failures.append(self._failure(1))
            sink._total += 1
        reader.join()

        assert seen == [1]

    def test_report_logs_error(self, caplog):
        sink = DiagnosticSink()
        with caplog.at_level("ERROR", logger="tickcodec.data.diagnostics"):
            sink.report(self._failure(1))
        assert "Error generating tick" in caplog.text

    def test_default_sink_used_when_none(self, equity_sub):
        default = get_default_sink()
        before = default.total_reported
        decode_lines(["garbage"], equity_sub, BASE_DATE)
        assert default.total_reported == before + 1
