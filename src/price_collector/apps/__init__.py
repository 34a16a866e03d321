"""Runnable applications built on the price collector core."""
