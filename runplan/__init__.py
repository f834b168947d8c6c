"""Periodized running plan generation and adaptive plan revision."""

__version__ = "0.1.0"
