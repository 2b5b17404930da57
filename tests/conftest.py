import threading
import time
from pathlib import Path

import pytest

from libcrsql.adapters import AdapterError


class FakeToolchain:
    """Writes a fake store tree per target, the way ``nix build`` would."""

    def __init__(self, store_root: Path, fail=(), extra_files=None, delay=0.0):
        self.store_root = store_root
        self.fail = set(fail)
        self.extra_files = extra_files or {}
        self.delay = delay
        self.calls = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def build(self, target):
        with self._lock:
            self.calls.append(target.slug)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if target.slug in self.fail:
                raise AdapterError(f"cross toolchain missing for {target.system}")
            lib = self.store_root / target.slug / "lib"
            lib.mkdir(parents=True, exist_ok=True)
            real = lib / f"libcrsqlite.{target.file_extension}.0"
            real.write_bytes(f"binary for {target.slug}".encode())
            link = lib / f"libcrsqlite.{target.file_extension}"
            if not link.exists():
                link.symlink_to(real.name)
            (lib / "pkgconfig.pc").write_text("noise")
            for name in self.extra_files.get(target.slug, []):
                (lib / name).write_bytes(b"extra")
        finally:
            with self._lock:
                self.active -= 1

    def output_location(self, target):
        return self.store_root / target.slug / "lib"


@pytest.fixture
def fake_toolchain(tmp_path):
    return FakeToolchain(tmp_path / "store")


@pytest.fixture(autouse=True)
def clear_lib_dir_override(monkeypatch):
    monkeypatch.delenv("LIBCRSQL_LIB_DIR", raising=False)
    monkeypatch.delenv("LIBCRSQL_WORKSPACE", raising=False)
    monkeypatch.delenv("LIBCRSQL_BUILD_CONFIG", raising=False)
    monkeypatch.delenv("LIBCRSQL_NIX_BIN", raising=False)
