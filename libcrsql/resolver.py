"""Pick the bundled cr-sqlite binary for a platform.

Candidates are checked in a fixed order and the first existing file wins:

1. ``{base}-{os}-{arch}.{ext}``
2. ``{base}.{ext}``
3. ``{base}.dylib``
4. ``{base}.so``

The last two are checked on every OS, so a darwin host can end up with a
``.so`` file. Only existence is checked; loading a wrong binary fails later in
``sqlite3``.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .core.config import BASE_NAME
from .core.errors import NotFoundError
from .core.platforms import PLATFORM_TARGETS, canonical_file_name, extension_for_os, parse_canonical_name


def candidate_paths(lib_dir: Path, os_name: str, arch: str, base_name: str = BASE_NAME) -> List[Path]:
    lib_dir = Path(lib_dir).expanduser().absolute()
    ext = extension_for_os(os_name)
    names = [
        canonical_file_name(os_name, arch, base_name),
        f"{base_name}.{ext}",
        f"{base_name}.dylib",
        f"{base_name}.so",
    ]
    out: List[Path] = []
    for name in names:
        path = lib_dir / name
        if path not in out:
            out.append(path)
    return out


def available_platforms(lib_dir: Path, base_name: str = BASE_NAME) -> Optional[List[str]]:
    """Slugs of the platforms bundled in ``lib_dir``, or ``None`` if it is missing."""
    lib_dir = Path(lib_dir)
    if not lib_dir.is_dir():
        return None
    found = set()
    for path in lib_dir.iterdir():
        parsed = parse_canonical_name(path.name, base_name)
        if parsed and path.is_file():
            found.add(f"{parsed[0]}-{parsed[1]}")
    return sorted(found)


def resolve_path(lib_dir: Path, os_name: str, arch: str, base_name: str = BASE_NAME) -> Path:
    for candidate in candidate_paths(lib_dir, os_name, arch, base_name):
        if candidate.is_file():
            return candidate

    raise NotFoundError(
        os_name,
        arch,
        canonical_file_name(os_name, arch, base_name),
        available_platforms=available_platforms(lib_dir, base_name),
        supported_targets=[t.description for t in PLATFORM_TARGETS],
    )
