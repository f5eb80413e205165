"""Aladhan API integration."""

from .client import AladhanClient, calculation_method_for

__all__ = ["AladhanClient", "calculation_method_for"]
