"""Hilal - season reminder bot."""

__version__ = "0.1.0"
