"""Minute-by-minute BTC/USD and USD/BRL price collector."""

__version__ = "0.1.0"
