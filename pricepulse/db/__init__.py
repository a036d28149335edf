"""
Database Layer
Persistence and storage operations.
"""

from .memory import MemoryPriceHistory, MemorySignalStore
from .sqlite import SQLiteStorage

__all__ = ["SQLiteStorage", "MemoryPriceHistory", "MemorySignalStore"]
