"""Prebuilt cr-sqlite extension binaries and a resolver for the current host.

Typical use::

    import sqlite3
    import libcrsql

    conn = sqlite3.connect(":memory:")
    libcrsql.load_extension(conn)
    conn.execute("SELECT crsql_as_crr('users')")
"""

from __future__ import annotations

import functools
import os
import sqlite3
from pathlib import Path
from typing import Optional

from .core.config import ENV_LIB_DIR, PACKAGE_LIB_DIR
from .core.errors import NotFoundError, UnsupportedEnvironmentError
from .core.platforms import detect_arch, detect_os
from .resolver import resolve_path
from .unsupported import ensure_supported_environment

__all__ = [
    "NotFoundError",
    "UnsupportedEnvironmentError",
    "default_lib_dir",
    "get_extension_path",
    "load_extension",
    "path_to_crsqlite_extension",
]


def default_lib_dir() -> Path:
    override = os.environ.get(ENV_LIB_DIR, "").strip()
    if override:
        return Path(override).expanduser().absolute()
    return PACKAGE_LIB_DIR


def get_extension_path(lib_dir: Optional[Path] = None) -> str:
    """Return the absolute path of the cr-sqlite extension for this host."""
    ensure_supported_environment()
    directory = Path(lib_dir) if lib_dir is not None else default_lib_dir()
    return str(resolve_path(directory, detect_os(), detect_arch()))


@functools.lru_cache(maxsize=None)
def path_to_crsqlite_extension() -> str:
    """Like ``get_extension_path()`` but computed once per process.

    The bundled files do not change after installation, so the cached value is
    never invalidated. A failed lookup is not cached.
    """
    return get_extension_path()


def load_extension(conn: sqlite3.Connection, lib_dir: Optional[Path] = None) -> None:
    path = get_extension_path(lib_dir) if lib_dir is not None else path_to_crsqlite_extension()
    conn.enable_load_extension(True)
    try:
        conn.load_extension(path)
    finally:
        conn.enable_load_extension(False)
