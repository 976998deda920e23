"""Outbound adapters - implementations of outbound ports.

The native engine is reached through ctypes bindings to the system SQLite
library.
"""

from smite.adapters.outbound.native import EngineLoadError, load_library
from smite.adapters.outbound.sqlite_engine import SQLiteEngine

__all__ = [
    "SQLiteEngine",
    "EngineLoadError",
    "load_library",
]
