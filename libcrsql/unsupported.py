"""Entry point for WebAssembly runtimes, where native extensions cannot load.

Pyodide and WASI builds of CPython cannot ``dlopen`` a host shared library, so
the package manifest points its ``browser`` variant here.
"""

from __future__ import annotations

import sys
from typing import NoReturn, Optional

from .core.config import PACKAGE_NAME
from .core.errors import UnsupportedEnvironmentError

UNSUPPORTED_PLATFORMS = {"emscripten", "wasi"}

UNSUPPORTED_MESSAGE = (
    f"{PACKAGE_NAME} is for CPython server environments only (Linux, macOS).\n\n"
    "For browser and WebAssembly runtimes such as Pyodide, use the sqlite3 module "
    "that ships with the runtime or a server-side database API.\n"
    f"{PACKAGE_NAME} provides native cr-sqlite extensions for servers, not browsers."
)


def is_unsupported_environment(platform_name: Optional[str] = None) -> bool:
    raw = (platform_name if platform_name is not None else sys.platform).strip().lower()
    return raw in UNSUPPORTED_PLATFORMS


def ensure_supported_environment(platform_name: Optional[str] = None) -> None:
    if is_unsupported_environment(platform_name):
        raise UnsupportedEnvironmentError(UNSUPPORTED_MESSAGE)


def get_extension_path() -> NoReturn:
    raise UnsupportedEnvironmentError(UNSUPPORTED_MESSAGE)
