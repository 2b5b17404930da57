"""Domain models for libcrsql builds and package manifests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import BASE_NAME


def now_iso() -> str:
    return datetime.now().astimezone().isoformat()


@dataclass(frozen=True)
class PlatformTarget:
    os: str
    arch: str
    file_extension: str
    build_identifier: str
    system: str = ""
    description: str = ""

    @property
    def slug(self) -> str:
        return f"{self.os}-{self.arch}"

    def file_name(self, base_name: str = BASE_NAME) -> str:
        return f"{base_name}-{self.os}-{self.arch}.{self.file_extension}"

    def label(self) -> str:
        name = self.system or self.slug
        return f"{name} ({self.description})" if self.description else name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlatformTarget":
        os_name = str(data.get("os") or data.get("platform") or "").strip()
        arch = str(data.get("arch") or "").strip()
        if not os_name or not arch:
            raise ValueError("PlatformTarget.os and PlatformTarget.arch are required")

        extension = str(data.get("file_extension") or data.get("extension") or "").strip().lstrip(".")
        if not extension:
            extension = "dylib" if os_name == "darwin" else "so"

        return cls(
            os=os_name,
            arch=arch,
            file_extension=extension,
            build_identifier=str(data.get("build_identifier") or data.get("nix_target") or "").strip(),
            system=str(data.get("system") or data.get("nix_system") or "").strip(),
            description=str(data.get("description") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "os": self.os,
            "arch": self.arch,
            "file_extension": self.file_extension,
            "build_identifier": self.build_identifier,
            "system": self.system,
            "description": self.description,
        }


@dataclass(frozen=True)
class BuiltArtifact:
    target: PlatformTarget
    file_name: str
    path: str
    source: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target.slug,
            "file_name": self.file_name,
            "path": self.path,
            "source": self.source,
        }


@dataclass(frozen=True)
class BuildFailure:
    target: PlatformTarget
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"target": self.target.slug, "reason": self.reason}


@dataclass(frozen=True)
class TargetResult:
    target: PlatformTarget
    artifact: Optional[BuiltArtifact] = None
    failure: Optional[BuildFailure] = None

    def __post_init__(self) -> None:
        if (self.artifact is None) == (self.failure is None):
            raise ValueError("TargetResult needs exactly one of artifact or failure")

    @property
    def ok(self) -> bool:
        return self.artifact is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetResult":
        target = PlatformTarget.from_dict(data.get("target") or {})
        if data.get("status") == "built":
            artifact = BuiltArtifact(
                target=target,
                file_name=str(data.get("file_name") or target.file_name()),
                path=str(data.get("path") or ""),
                source=str(data.get("source") or ""),
            )
            return cls(target=target, artifact=artifact)
        reason = str(data.get("reason") or data.get("error") or "unknown").strip() or "unknown"
        return cls(target=target, failure=BuildFailure(target=target, reason=reason))

    def to_dict(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "target": self.target.to_dict(),
            "status": "built" if self.ok else "failed",
        }
        if self.artifact is not None:
            row.update(
                {
                    "file_name": self.artifact.file_name,
                    "path": self.artifact.path,
                    "source": self.artifact.source,
                }
            )
        if self.failure is not None:
            row["reason"] = self.failure.reason
        return row


@dataclass
class BuildReport:
    run_id: str
    output_dir: str
    mode: str
    schema_version: int = 1
    status: str = "started"
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)
    results: List[TargetResult] = field(default_factory=list)
    stages: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def artifacts(self) -> List[BuiltArtifact]:
        return [r.artifact for r in self.results if r.artifact is not None]

    @property
    def failures(self) -> List[BuildFailure]:
        return [r.failure for r in self.results if r.failure is not None]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildReport":
        results: List[TargetResult] = []
        for raw in data.get("results", []) or []:
            if not isinstance(raw, dict):
                continue
            try:
                results.append(TargetResult.from_dict(raw))
            except ValueError:
                continue

        return cls(
            schema_version=int(data.get("schema_version", 1)),
            run_id=str(data.get("run_id", "")).strip(),
            output_dir=str(data.get("output_dir", "")).strip(),
            mode=str(data.get("mode", "")).strip(),
            status=str(data.get("status", "started")).strip() or "started",
            created_at=str(data.get("created_at") or now_iso()),
            updated_at=str(data.get("updated_at") or now_iso()),
            results=results,
            stages=data.get("stages") if isinstance(data.get("stages"), dict) else {},
            warnings=[str(x) for x in (data.get("warnings") or [])],
            errors=[str(x) for x in (data.get("errors") or [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "run_id": self.run_id,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "mode": self.mode,
            "output_dir": self.output_dir,
            "results": [r.to_dict() for r in self.results],
            "stages": self.stages,
            "warnings": self.warnings,
            "errors": self.errors,
        }

    def touch(self) -> None:
        self.updated_at = now_iso()


@dataclass
class PackageManifest:
    name: str
    version: str
    description: str = ""
    entry_points: Dict[str, Any] = field(default_factory=dict)
    variants: Dict[str, str] = field(default_factory=dict)
    files: List[str] = field(default_factory=list)
    available_platforms: List[str] = field(default_factory=list)
    supported_targets: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageManifest":
        name = str(data.get("name", "")).strip()
        if not name:
            raise ValueError("PackageManifest.name is required")
        return cls(
            name=name,
            version=str(data.get("version", "")).strip(),
            description=str(data.get("description") or ""),
            entry_points=data.get("entry_points") if isinstance(data.get("entry_points"), dict) else {},
            variants={str(k): str(v) for k, v in (data.get("variants") or {}).items()},
            files=[str(x) for x in (data.get("files") or [])],
            available_platforms=[str(x) for x in (data.get("available_platforms") or [])],
            supported_targets=[str(x) for x in (data.get("supported_targets") or [])],
            warnings=[str(x) for x in (data.get("warnings") or [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "entry_points": self.entry_points,
            "variants": self.variants,
            "files": self.files,
            "available_platforms": self.available_platforms,
            "supported_targets": self.supported_targets,
            "warnings": self.warnings,
        }
