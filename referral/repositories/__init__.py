"""
Persistence adapters.

Services depend on the JsonStore interface rather than touching the data
files directly.
"""

from .json_store import JsonStore, Ref, StorageError

__all__ = ["JsonStore", "Ref", "StorageError"]
