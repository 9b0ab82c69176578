"""Reporting utilities for bpnet."""

from .artifacts import write_manifest
from .console import ConsoleReporter
from .metrics import CsvSink, JsonlSink, MetricsCapture
from .plots import PlotAdapter

__all__ = [
    "ConsoleReporter",
    "CsvSink",
    "JsonlSink",
    "MetricsCapture",
    "PlotAdapter",
    "write_manifest",
]
