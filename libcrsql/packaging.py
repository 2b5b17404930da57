"""Assemble the production package: binaries, manifest, README and report."""

from __future__ import annotations

import copy
import importlib.metadata
import logging
import shutil
import tomllib
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .builder import build_all, clean_output_dir, missing_platforms_warning
from .core.config import (
    BASE_NAME,
    BUILD_MODE_NIX,
    EVENTS_FILENAME,
    LIB_DIRNAME,
    MANIFEST_FILENAME,
    PACKAGE_NAME,
    PYPROJECT_FILENAME,
    README_FILENAME,
    REPORT_FILENAME,
)
from .core.errors import BuildError
from .core.io import append_event, read_manifest, read_report, write_manifest
from .core.models import BuildReport, PackageManifest, PlatformTarget, TargetResult
from .core.state_machine import (
    STATE_BUILDING,
    STATE_CLEANED,
    STATE_COMPLETED,
    STATE_PARTIAL,
    TERMINAL_STATES,
    transition,
)

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Prebuilt cr-sqlite extension for conflict-free replicated SQLite databases."

ENTRY_POINTS = {
    "python": "libcrsql:get_extension_path",
    "console_scripts": {
        "libcrsql-extension-path": "libcrsql.cli:extension_path_main",
    },
}

VARIANTS = {
    "default": "libcrsql:get_extension_path",
    "browser": "libcrsql.unsupported:get_extension_path",
}

_DEFAULT_README = """# libcrsql

Prebuilt cr-sqlite extension for conflict-free replicated SQLite databases.

## Installation

```bash
pip install libcrsql
```

## Usage

```python
import sqlite3
import libcrsql

conn = sqlite3.connect(":memory:")
conn.enable_load_extension(True)
conn.load_extension(libcrsql.path_to_crsqlite_extension())
conn.enable_load_extension(False)

conn.execute("SELECT crsql_as_crr('users')")
```

## CLI

```bash
# Print the path to the extension for this machine
libcrsql-extension-path
```
"""


def read_project_metadata(workspace_root: Path) -> dict:
    pyproject = workspace_root / PYPROJECT_FILENAME
    if pyproject.exists():
        with pyproject.open("rb") as handle:
            data = tomllib.load(handle)
        project = data.get("project")
        if isinstance(project, dict):
            return project
    try:
        return {"name": PACKAGE_NAME, "version": importlib.metadata.version(PACKAGE_NAME)}
    except importlib.metadata.PackageNotFoundError:
        return {"name": PACKAGE_NAME, "version": "0.0.0"}


def write_readme(workspace_root: Path, output_dir: Path) -> Path:
    source = workspace_root / README_FILENAME
    destination = output_dir / README_FILENAME
    if source.exists():
        shutil.copyfile(source, destination)
    else:
        destination.write_text(_DEFAULT_README, encoding="utf-8")
    return destination


def _package_files(output_dir: Path) -> List[str]:
    files: List[str] = []
    lib_dir = output_dir / LIB_DIRNAME
    if lib_dir.is_dir():
        files.extend(f"{LIB_DIRNAME}/{p.name}" for p in lib_dir.iterdir() if p.is_file())
    if (output_dir / README_FILENAME).exists():
        files.append(README_FILENAME)
    return sorted(files)


def build_manifest(
    metadata: dict,
    results: Sequence[TargetResult],
    targets: Sequence[PlatformTarget],
    output_dir: Path,
    warnings: Sequence[str] = (),
) -> PackageManifest:
    built = sorted(r.target.slug for r in results if r.ok)
    return PackageManifest(
        name=str(metadata.get("name") or PACKAGE_NAME),
        version=str(metadata.get("version") or "0.0.0"),
        description=str(metadata.get("description") or DEFAULT_DESCRIPTION),
        entry_points=copy.deepcopy(ENTRY_POINTS),
        variants=dict(VARIANTS),
        files=_package_files(output_dir),
        available_platforms=built,
        supported_targets=[t.description for t in targets],
        warnings=list(warnings),
    )


def previous_run(output_dir: Path) -> Optional[dict]:
    """Describe the build already sitting in ``output_dir``, if any.

    An unreadable report is logged and treated as absent.
    """
    report_path = output_dir / REPORT_FILENAME
    if not report_path.is_file():
        return None
    try:
        previous = read_report(report_path)
    except (ValueError, OSError) as exc:
        logger.warning("Ignoring unreadable report %s: %s", report_path, exc)
        return None

    info = {
        "run_id": previous.run_id,
        "status": previous.status,
        "finished": previous.status in TERMINAL_STATES,
        "built": sorted(a.target.slug for a in previous.artifacts),
        "version": "",
    }
    manifest_path = output_dir / MANIFEST_FILENAME
    if manifest_path.is_file():
        try:
            info["version"] = read_manifest(manifest_path).version
        except (ValueError, OSError) as exc:
            logger.warning("Ignoring unreadable manifest %s: %s", manifest_path, exc)
    return info


def build_production(
    report: BuildReport,
    *,
    workspace_root: Path,
    output_dir: Path,
    targets: Sequence[PlatformTarget],
    toolchain: Any,
    max_concurrency: int,
    strict: bool = False,
    base_name: str = BASE_NAME,
) -> PackageManifest:
    """Run a full production build, updating ``report`` as it goes.

    Raises ``BuildError`` when no target was built, or when ``strict`` is set
    and any target is missing. Toolchain availability errors propagate.
    """
    events_path = output_dir / EVENTS_FILENAME

    previous = previous_run(output_dir)
    if previous is not None:
        report.stages["previous"] = previous
        logger.info("Replacing previous build %s (%s)", previous["run_id"], previous["status"])

    if report.mode == BUILD_MODE_NIX:
        logger.info("Checking Nix toolchain...")
        toolchain.check()
        if toolchain.has_remote_builders():
            logger.info("Remote builders detected - will use for missing platforms")
        else:
            logger.info("No remote builders - will try binary cache substitution")

    logger.info("Cleaning %s", output_dir)
    lib_dir = clean_output_dir(output_dir)
    transition(report, STATE_CLEANED)
    append_event(events_path, "cleaned", {"output_dir": str(output_dir)})

    transition(report, STATE_BUILDING)
    append_event(events_path, "build_started", {"targets": [t.slug for t in targets]})

    def _on_result(result: TargetResult) -> None:
        event = "target_built" if result.ok else "target_failed"
        append_event(events_path, event, result.to_dict())

    results = build_all(
        targets,
        max_concurrency,
        lib_dir=lib_dir,
        toolchain=toolchain,
        base_name=base_name,
        on_result=_on_result,
    )
    report.results = results
    built_count = sum(1 for r in results if r.ok)
    report.stages["build"] = {"built": built_count, "total": len(results)}
    logger.info("Built %d/%d platform extensions", built_count, len(results))

    warning = missing_platforms_warning(results)
    if warning:
        report.warnings.append(warning)
        logger.warning("%s - package won't be truly universal", warning)

    if built_count == 0:
        raise BuildError("No platform extensions were built")

    if warning and strict:
        raise BuildError(f"Strict build requires every platform. {warning}")

    write_readme(workspace_root, output_dir)
    manifest = build_manifest(
        read_project_metadata(workspace_root),
        results,
        targets,
        output_dir,
        warnings=report.warnings,
    )
    write_manifest(output_dir / MANIFEST_FILENAME, manifest)
    append_event(events_path, "manifest_written", {"files": manifest.files})

    transition(report, STATE_PARTIAL if warning else STATE_COMPLETED)
    return manifest


def summary(report: BuildReport, manifest: Optional[PackageManifest], report_path: Path) -> dict:
    return {
        "status": report.status,
        "run_id": report.run_id,
        "built": [a.file_name for a in report.artifacts],
        "missing": [f.target.slug for f in report.failures],
        "warnings": report.warnings,
        "errors": report.errors,
        "previous": report.stages.get("previous"),
        "manifest": str(Path(report.output_dir) / MANIFEST_FILENAME) if manifest is not None else "",
        "report": str(report_path),
    }
