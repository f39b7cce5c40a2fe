"""Route modules for the Viandas API."""
from . import files, orders, users

__all__ = ["files", "orders", "users"]
