"""Adapters layer - concrete implementations of port interfaces."""

from smite.adapters.outbound import EngineLoadError, SQLiteEngine, load_library

__all__ = [
    "SQLiteEngine",
    "EngineLoadError",
    "load_library",
]
