"""Price collector service for minute-by-minute BTC/USD and USD/BRL quotes.

Fetch the Bitcoin spot price from CoinGecko and the USD/BRL reference rate
from Frankfurter once per minute, persist one record per minute to a
database (SQLite or PostgreSQL via SQLAlchemy), and prune records older
than the retention window.
"""
