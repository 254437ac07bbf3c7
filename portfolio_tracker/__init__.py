"""Hybrid portfolio tracker: static holdings merged with live quotes."""

__version__ = "1.0.0"
