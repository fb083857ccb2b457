"""Formatting of benchmark measurements, terminal reports and SVG charts of results."""

__version__ = "0.1.0"