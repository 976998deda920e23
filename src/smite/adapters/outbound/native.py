"""Loading and declaring the native SQLite C library.

The library is resolved once per process and every function smite uses is
given explicit argtypes/restype so ctypes never guesses at pointer widths.

Search order:
    1. An explicit path (SMITE_ENGINE__LIBRARY_PATH or an argument)
    2. ctypes.util.find_library("sqlite3")
    3. Conventional platform library names
    4. The shared object of the interpreter's own _sqlite3 extension,
       whose symbol lookup reaches the SQLite it was linked against

References:
    - https://www.sqlite.org/c3ref/intro.html
    - https://www.sqlite.org/rescode.html
"""

from __future__ import annotations

import ctypes
import ctypes.util
import sys
from ctypes import POINTER, c_char_p, c_double, c_int, c_int64, c_void_p
from functools import lru_cache
from pathlib import Path

from smite.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Primary result codes
SQLITE_OK = 0
SQLITE_ERROR = 1
SQLITE_BUSY = 5
SQLITE_NOMEM = 7
SQLITE_CANTOPEN = 14
SQLITE_CONSTRAINT = 19
SQLITE_MISUSE = 21
SQLITE_RANGE = 25
SQLITE_ROW = 100
SQLITE_DONE = 101

# Fundamental datatypes reported by sqlite3_column_type
SQLITE_INTEGER = 1
SQLITE_FLOAT = 2
SQLITE_TEXT = 3
SQLITE_BLOB = 4
SQLITE_NULL = 5

# sqlite3_open_v2 flags
SQLITE_OPEN_READWRITE = 0x00000002
SQLITE_OPEN_CREATE = 0x00000004
SQLITE_OPEN_FULLMUTEX = 0x00010000

# Destructor sentinel: the engine copies the buffer before the bind returns
SQLITE_TRANSIENT = c_void_p(-1)

_PLATFORM_NAMES: dict[str, tuple[str, ...]] = {
    "darwin": ("libsqlite3.dylib", "libsqlite3.0.dylib", "/usr/lib/libsqlite3.dylib"),
    "win32": ("sqlite3.dll", "winsqlite3.dll"),
}
_DEFAULT_NAMES = ("libsqlite3.so.0", "libsqlite3.so")

_SIGNATURES: dict[str, tuple[list[type], type | None]] = {
    "sqlite3_libversion": ([], c_char_p),
    "sqlite3_errstr": ([c_int], c_char_p),
    "sqlite3_errmsg": ([c_void_p], c_char_p),
    "sqlite3_open_v2": ([c_char_p, POINTER(c_void_p), c_int, c_char_p], c_int),
    "sqlite3_close": ([c_void_p], c_int),
    "sqlite3_busy_timeout": ([c_void_p, c_int], c_int),
    "sqlite3_prepare_v2": (
        [c_void_p, c_void_p, c_int, POINTER(c_void_p), POINTER(c_void_p)],
        c_int,
    ),
    "sqlite3_bind_text": ([c_void_p, c_int, c_char_p, c_int, c_void_p], c_int),
    "sqlite3_bind_double": ([c_void_p, c_int, c_double], c_int),
    "sqlite3_bind_int64": ([c_void_p, c_int, c_int64], c_int),
    "sqlite3_bind_null": ([c_void_p, c_int], c_int),
    "sqlite3_step": ([c_void_p], c_int),
    "sqlite3_column_count": ([c_void_p], c_int),
    "sqlite3_column_name": ([c_void_p, c_int], c_char_p),
    "sqlite3_column_type": ([c_void_p, c_int], c_int),
    "sqlite3_column_text": ([c_void_p, c_int], c_void_p),
    "sqlite3_column_bytes": ([c_void_p, c_int], c_int),
    "sqlite3_column_double": ([c_void_p, c_int], c_double),
    "sqlite3_column_int64": ([c_void_p, c_int], c_int64),
    "sqlite3_finalize": ([c_void_p], c_int),
}


class EngineLoadError(OSError):
    """Raised when no usable SQLite library can be found."""

    pass


def _extension_library() -> str | None:
    """Return the path of the interpreter's _sqlite3 extension module, if any."""
    try:
        import _sqlite3
    except ImportError:
        return None
    return getattr(_sqlite3, "__file__", None)


def library_candidates(library_path: str | Path | None = None) -> list[str]:
    """List the library names/paths to try, in priority order."""
    if library_path is not None:
        return [str(library_path)]

    candidates: list[str] = []
    found = ctypes.util.find_library("sqlite3")
    if found:
        candidates.append(found)
    candidates.extend(_PLATFORM_NAMES.get(sys.platform, _DEFAULT_NAMES))
    extension = _extension_library()
    if extension:
        candidates.append(extension)
    return candidates


def _declare(lib: ctypes.CDLL) -> None:
    """Attach argtypes/restype to every function smite calls."""
    for name, (argtypes, restype) in _SIGNATURES.items():
        function = getattr(lib, name)
        function.argtypes = argtypes
        function.restype = restype


@lru_cache(maxsize=None)
def load_library(library_path: str | None = None) -> ctypes.CDLL:
    """Load and declare the SQLite library.

    Args:
        library_path: Explicit library to load. When given, no other
            location is tried.

    Returns:
        The declared library handle (cached per library_path).

    Raises:
        EngineLoadError: If no candidate could be loaded or a candidate
            lacks the required symbols.
    """
    tried: list[str] = []
    for candidate in library_candidates(library_path):
        try:
            lib = ctypes.CDLL(candidate)
            _declare(lib)
        except (OSError, AttributeError) as e:
            tried.append(f"{candidate} ({e})")
            continue
        logger.debug(
            "engine_library_loaded",
            library=candidate,
            version=lib.sqlite3_libversion().decode("ascii"),
        )
        return lib

    raise EngineLoadError(
        "Could not load the SQLite library. Tried: "
        + ("; ".join(tried) or "no candidates")
        + ". Set SMITE_ENGINE__LIBRARY_PATH to the library location."
    )
