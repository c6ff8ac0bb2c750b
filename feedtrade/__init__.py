"""Ledger backend for a feed trading operation."""

__version__ = "1.0.0"
