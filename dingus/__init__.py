"""Dingus - config-driven command runner."""

__version__ = "0.1.0"
