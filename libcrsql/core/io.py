"""I/O helpers for build reports, manifests and event logs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .models import BuildReport, PackageManifest, now_iso


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, payload: Any) -> None:
    ensure_parent(path)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")


def read_json_object(path: Path) -> Dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected JSON object in {path}, got {type(data).__name__}")
    return data


def read_report(path: Path) -> BuildReport:
    return BuildReport.from_dict(read_json_object(path))


def write_report(path: Path, report: BuildReport) -> None:
    report.touch()
    write_json(path, report.to_dict())


def read_manifest(path: Path) -> PackageManifest:
    return PackageManifest.from_dict(read_json_object(path))


def write_manifest(path: Path, manifest: PackageManifest) -> None:
    write_json(path, manifest.to_dict())


def append_event(path: Path, event: str, payload: Dict[str, Any]) -> None:
    ensure_parent(path)
    row = {
        "ts": now_iso(),
        "event": event,
        "payload": payload,
    }
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(row, ensure_ascii=False) + "\n")
