"""Repair tracker: job bookkeeping and dashboard statistics for a repair shop."""

__version__ = "0.1.0"
