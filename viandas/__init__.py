"""Viandas: orders, accounts and file uploads behind JWT authentication."""

__version__ = "1.0.0"
