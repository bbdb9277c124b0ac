"""Lottery statistics and recommendation engine."""

__version__ = "1.0.0"
