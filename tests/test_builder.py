import pytest

from libcrsql.adapters import PrebuiltToolchain
from libcrsql.builder import (
    AMBIGUOUS_OR_MISSING,
    ArtifactLookupError,
    build_all,
    clean_output_dir,
    find_artifact,
    missing_platforms_warning,
)
from libcrsql.core.platforms import PLATFORM_TARGETS


def _snapshot(lib_dir):
    return {p.name: p.read_bytes() for p in sorted(lib_dir.iterdir())}


def test_build_all_copies_every_target(tmp_path, fake_toolchain):
    lib_dir = clean_output_dir(tmp_path / "dist")

    results = build_all(PLATFORM_TARGETS, 2, lib_dir=lib_dir, toolchain=fake_toolchain)

    assert [r.target for r in results] == list(PLATFORM_TARGETS)
    assert all(r.ok for r in results)
    assert sorted(p.name for p in lib_dir.iterdir()) == [
        "crsqlite-darwin-aarch64.dylib",
        "crsqlite-darwin-x86_64.dylib",
        "crsqlite-linux-aarch64.so",
        "crsqlite-linux-x86_64.so",
    ]


def test_symlinks_are_copied_as_real_files(tmp_path, fake_toolchain):
    lib_dir = clean_output_dir(tmp_path / "dist")

    results = build_all(PLATFORM_TARGETS[:1], 1, lib_dir=lib_dir, toolchain=fake_toolchain)

    copied = lib_dir / "crsqlite-linux-x86_64.so"
    assert not copied.is_symlink()
    assert copied.read_bytes() == b"binary for linux-x86_64"
    assert results[0].artifact.source.endswith("libcrsqlite.so")


def test_one_failing_target_does_not_stop_the_others(tmp_path, fake_toolchain):
    failing = PLATFORM_TARGETS[1]
    fake_toolchain.fail.add(failing.slug)
    lib_dir = clean_output_dir(tmp_path / "dist")

    results = build_all(PLATFORM_TARGETS, 2, lib_dir=lib_dir, toolchain=fake_toolchain)

    assert len(results) == 4
    assert [r.ok for r in results] == [True, False, True, True]
    assert results[1].failure.target == failing
    assert "cross toolchain missing" in results[1].failure.reason
    assert sorted(fake_toolchain.calls) == sorted(t.slug for t in PLATFORM_TARGETS)
    assert missing_platforms_warning(results) == f"Missing: {failing.system} ({failing.description})"


def test_ambiguous_artifact_is_a_failure(tmp_path, fake_toolchain):
    target = PLATFORM_TARGETS[0]
    fake_toolchain.extra_files[target.slug] = ["crsqlite-debug.so"]
    lib_dir = clean_output_dir(tmp_path / "dist")

    results = build_all([target], 1, lib_dir=lib_dir, toolchain=fake_toolchain)

    assert not results[0].ok
    assert results[0].failure.reason.startswith(AMBIGUOUS_OR_MISSING)
    assert list(lib_dir.iterdir()) == []


def test_concurrency_is_bounded(tmp_path, fake_toolchain):
    fake_toolchain.delay = 0.05
    lib_dir = clean_output_dir(tmp_path / "dist")

    build_all(PLATFORM_TARGETS, 2, lib_dir=lib_dir, toolchain=fake_toolchain)

    assert 1 <= fake_toolchain.max_active <= 2


def test_invalid_concurrency(tmp_path, fake_toolchain):
    with pytest.raises(ValueError):
        build_all(PLATFORM_TARGETS, 0, lib_dir=tmp_path, toolchain=fake_toolchain)


def test_duplicate_targets_rejected(tmp_path, fake_toolchain):
    with pytest.raises(ValueError, match="Duplicate"):
        build_all([PLATFORM_TARGETS[0], PLATFORM_TARGETS[0]], 1, lib_dir=tmp_path, toolchain=fake_toolchain)


def test_on_result_sees_every_target(tmp_path, fake_toolchain):
    fake_toolchain.fail.add("darwin-x86_64")
    seen = []

    build_all(PLATFORM_TARGETS, 2, lib_dir=tmp_path / "lib", toolchain=fake_toolchain, on_result=seen.append)

    assert sorted(r.target.slug for r in seen) == sorted(t.slug for t in PLATFORM_TARGETS)
    assert [r.target.slug for r in seen if not r.ok] == ["darwin-x86_64"]


def test_rebuild_is_byte_identical(tmp_path, fake_toolchain):
    output = tmp_path / "dist"

    lib_dir = clean_output_dir(output)
    build_all(PLATFORM_TARGETS, 2, lib_dir=lib_dir, toolchain=fake_toolchain)
    first = _snapshot(lib_dir)

    (lib_dir / "stale.so").write_bytes(b"left over")
    lib_dir = clean_output_dir(output)
    build_all(PLATFORM_TARGETS, 2, lib_dir=lib_dir, toolchain=fake_toolchain)

    assert _snapshot(lib_dir) == first


def test_find_artifact_is_case_sensitive(tmp_path):
    (tmp_path / "libCRSQLITE.so").write_bytes(b"x")

    with pytest.raises(ArtifactLookupError):
        find_artifact(tmp_path, "so")


def test_find_artifact_matches_suffix_only(tmp_path):
    (tmp_path / "libcrsqlite.so.0").write_bytes(b"x")
    wanted = tmp_path / "libcrsqlite.so"
    wanted.write_bytes(b"y")
    (tmp_path / "libcrsqlite.dylib").write_bytes(b"z")

    assert find_artifact(tmp_path, "so") == wanted


def test_find_artifact_missing_location(tmp_path):
    with pytest.raises(ArtifactLookupError, match=AMBIGUOUS_OR_MISSING):
        find_artifact(tmp_path / "missing", "so")


def test_prebuilt_toolchain_subdir_and_flat(tmp_path):
    source = tmp_path / "prebuilt"
    (source / "linux-aarch64").mkdir(parents=True)
    (source / "linux-aarch64" / "libcrsqlite.so").write_bytes(b"arm")
    (source / "crsqlite-darwin-aarch64.dylib").write_bytes(b"mac")
    lib_dir = clean_output_dir(tmp_path / "dist")

    results = build_all(PLATFORM_TARGETS, 2, lib_dir=lib_dir, toolchain=PrebuiltToolchain(source))

    by_slug = {r.target.slug: r for r in results}
    assert by_slug["linux-aarch64"].ok
    assert by_slug["darwin-aarch64"].ok
    assert not by_slug["linux-x86_64"].ok
    assert "no prebuilt binary" in by_slug["linux-x86_64"].failure.reason
    assert (lib_dir / "crsqlite-linux-aarch64.so").read_bytes() == b"arm"
    assert (lib_dir / "crsqlite-darwin-aarch64.dylib").read_bytes() == b"mac"


def test_prebuilt_toolchain_missing_source(tmp_path):
    results = build_all(
        PLATFORM_TARGETS[:1], 1, lib_dir=tmp_path / "lib", toolchain=PrebuiltToolchain(tmp_path / "none")
    )

    assert results[0].failure.reason.startswith("build failed: prebuilt directory missing")
