"""Toolchain stand-in that reads already built binaries from a directory."""

from __future__ import annotations

from pathlib import Path

from .runner import AdapterError
from ..core.config import BASE_NAME
from ..core.models import PlatformTarget


class PrebuiltToolchain:
    """Serve binaries from ``source_dir`` instead of compiling them.

    Each target is looked up either in a per-platform subdirectory
    (``source_dir/linux-x86_64/``) or, for a flat directory laid out like the
    output ``lib/``, as its canonical file name.
    """

    def __init__(self, source_dir: Path, base_name: str = BASE_NAME) -> None:
        self.source_dir = source_dir
        self.base_name = base_name

    def build(self, target: PlatformTarget) -> None:
        if not self.source_dir.is_dir():
            raise AdapterError(f"prebuilt directory missing: {self.source_dir}")

    def output_location(self, target: PlatformTarget) -> Path:
        subdir = self.source_dir / target.slug
        if subdir.is_dir():
            return subdir
        flat = self.source_dir / target.file_name(self.base_name)
        if flat.is_file():
            return flat
        raise AdapterError(f"no prebuilt binary for {target.slug} in {self.source_dir}")
