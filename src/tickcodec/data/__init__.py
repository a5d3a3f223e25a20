"""Tick records, line decoding and source resolution."""

from tickcodec.data.cloner import clone_tick, copied_fields_equal
from tickcodec.data.decoder import decode, decode_lines, decode_or_raise, read
from tickcodec.data.diagnostics import DiagnosticSink
from tickcodec.data.market_data import TickRecord
from tickcodec.data.results import BatchResult, DecodeFailure, DecodeResult
from tickcodec.data.source_resolver import require_source, resolve, resolve_subscription

__all__ = [
    "TickRecord",
    "DecodeFailure",
    "DecodeResult",
    "BatchResult",
    "DiagnosticSink",
    "decode",
    "decode_or_raise",
    "decode_lines",
    "read",
    "resolve",
    "resolve_subscription",
    "require_source",
    "clone_tick",
    "copied_fields_equal",
]
