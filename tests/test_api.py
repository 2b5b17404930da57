from types import SimpleNamespace

import pytest

import libcrsql
from libcrsql import unsupported
from libcrsql.core.config import PACKAGE_LIB_DIR
from libcrsql.core.errors import NotFoundError, UnsupportedEnvironmentError


@pytest.fixture(autouse=True)
def fresh_cache():
    libcrsql.path_to_crsqlite_extension.cache_clear()
    yield
    libcrsql.path_to_crsqlite_extension.cache_clear()


@pytest.fixture
def linux_host(monkeypatch):
    monkeypatch.setattr(libcrsql, "detect_os", lambda: "linux")
    monkeypatch.setattr(libcrsql, "detect_arch", lambda: "x86_64")


class RecordingConnection:
    def __init__(self):
        self.calls = []

    def enable_load_extension(self, enabled):
        self.calls.append(("enable", enabled))

    def load_extension(self, path):
        self.calls.append(("load", path))


def test_default_lib_dir_is_inside_package():
    assert libcrsql.default_lib_dir() == PACKAGE_LIB_DIR
    assert PACKAGE_LIB_DIR.parent.name == "libcrsql"


def test_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv("LIBCRSQL_LIB_DIR", str(tmp_path))

    assert libcrsql.default_lib_dir() == tmp_path


def test_get_extension_path(monkeypatch, tmp_path, linux_host):
    lib = tmp_path / "crsqlite-linux-x86_64.so"
    lib.write_bytes(b"so")
    monkeypatch.setenv("LIBCRSQL_LIB_DIR", str(tmp_path))

    assert libcrsql.get_extension_path() == str(lib)


def test_get_extension_path_explicit_dir(tmp_path, linux_host):
    (tmp_path / "crsqlite.so").write_bytes(b"so")

    assert libcrsql.get_extension_path(tmp_path).endswith("crsqlite.so")


def test_get_extension_path_not_found(monkeypatch, tmp_path, linux_host):
    monkeypatch.setenv("LIBCRSQL_LIB_DIR", str(tmp_path))

    with pytest.raises(NotFoundError) as info:
        libcrsql.get_extension_path()
    assert info.value.expected_name == "crsqlite-linux-x86_64.so"


def test_cached_path_is_computed_once(monkeypatch, tmp_path, linux_host):
    lib = tmp_path / "crsqlite-linux-x86_64.so"
    lib.write_bytes(b"so")
    monkeypatch.setenv("LIBCRSQL_LIB_DIR", str(tmp_path))

    first = libcrsql.path_to_crsqlite_extension()
    lib.unlink()

    assert libcrsql.path_to_crsqlite_extension() == first


def test_cached_path_does_not_cache_failures(monkeypatch, tmp_path, linux_host):
    monkeypatch.setenv("LIBCRSQL_LIB_DIR", str(tmp_path))
    with pytest.raises(NotFoundError):
        libcrsql.path_to_crsqlite_extension()

    (tmp_path / "crsqlite.so").write_bytes(b"so")

    assert libcrsql.path_to_crsqlite_extension().endswith("crsqlite.so")


def test_load_extension_toggles_loading(tmp_path, linux_host):
    (tmp_path / "crsqlite-linux-x86_64.so").write_bytes(b"so")
    conn = RecordingConnection()

    libcrsql.load_extension(conn, lib_dir=tmp_path)

    assert conn.calls[0] == ("enable", True)
    assert conn.calls[1][0] == "load"
    assert conn.calls[1][1].endswith("crsqlite-linux-x86_64.so")
    assert conn.calls[2] == ("enable", False)


@pytest.mark.parametrize("name,expected", [("emscripten", True), ("wasi", True), ("linux", False), ("darwin", False)])
def test_unsupported_environment_detection(name, expected):
    assert unsupported.is_unsupported_environment(name) is expected


def test_unsupported_environment_blocks_resolution(monkeypatch, tmp_path):
    (tmp_path / "crsqlite.so").write_bytes(b"so")
    monkeypatch.setattr(unsupported, "sys", SimpleNamespace(platform="emscripten"))

    with pytest.raises(UnsupportedEnvironmentError, match="server environments only"):
        libcrsql.get_extension_path(tmp_path)


def test_browser_variant_always_fails():
    with pytest.raises(UnsupportedEnvironmentError):
        unsupported.get_extension_path()
