"""Exporters for delivering spans to backends."""

from tabletrace.exporter.console_exporter import ConsoleExporter
from tabletrace.exporter.otlp_exporter import OTLPExporter

__all__ = ["ConsoleExporter", "OTLPExporter"]
