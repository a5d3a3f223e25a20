"""Decode raw market tick lines into unified tick records."""

__version__ = "0.1.0"
