"""Command line entry points.

``libcrsql-extension-path``  print the extension path for this host
``libcrsql-build``           build binaries and write the production package
``libcrsql-sync-version``    align the package version with cr-sqlite
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from .adapters import AdapterError, NixToolchain, PrebuiltToolchain
from .core.config import (
    BUILD_MODE_NIX,
    BUILD_MODE_PREBUILT,
    BUILD_MODES,
    DEFAULT_BUILD_CONFIG,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_NIX_BIN,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PREBUILT_DIR,
    ENV_BUILD_CONFIG,
    ENV_NIX_BIN,
    ENV_WORKSPACE_ROOT,
    EVENTS_FILENAME,
    PYPROJECT_FILENAME,
    REPORT_FILENAME,
)
from .core.errors import BuildError, NotFoundError, UnsupportedEnvironmentError
from .core.io import append_event, write_report
from .core.models import BuildReport
from .core.platforms import select_targets
from .core.state_machine import STATE_FAILED, transition
from .packaging import build_production, summary
from .version_sync import sync_version


def _parse_list(raw: Any) -> List[str]:
    if isinstance(raw, list):
        return [str(x).strip() for x in raw if str(x).strip()]
    return [part.strip() for part in str(raw or "").split(",") if part.strip()]


def _load_defaults(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        return {}
    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a JSON object: {config_path}")
    return data


def _resolve_config_path(raw: str, workspace_root: Path) -> Path:
    explicit = (raw or "").strip() or os.environ.get(ENV_BUILD_CONFIG, "").strip()
    if explicit:
        return Path(explicit).expanduser().resolve()
    return (workspace_root / DEFAULT_BUILD_CONFIG).resolve()


def _str_choice(*values: Any) -> str:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _bool_choice(*values: Any, fallback: bool = False) -> bool:
    for value in values:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"1", "true", "yes", "on"}:
            return True
        if isinstance(value, str) and value.strip().lower() in {"0", "false", "no", "off"}:
            return False
    return fallback


def _int_choice(*values: Any, fallback: int) -> int:
    for value in values:
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
    return fallback


def _workspace_root(raw: str) -> Path:
    value = _str_choice(raw, os.environ.get(ENV_WORKSPACE_ROOT, ""))
    if value:
        return Path(value).expanduser().resolve()
    return Path.cwd().resolve()


def _under(workspace_root: Path, raw: str) -> Path:
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = workspace_root / path
    return path.resolve()


def _new_run_id() -> str:
    return f"libcrsql-build-{uuid.uuid4()}"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False))


# extension path


def run_extension_path() -> int:
    from . import get_extension_path

    try:
        print(get_extension_path())
    except (NotFoundError, UnsupportedEnvironmentError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return 0


def extension_path_main() -> None:
    raise SystemExit(run_extension_path())


# production build


def run_build(args: argparse.Namespace) -> int:
    workspace = _workspace_root(args.workspace_root)
    try:
        defaults = _load_defaults(_resolve_config_path(args.config, workspace))
        output_dir = _under(workspace, _str_choice(args.output_dir, defaults.get("output_dir"), DEFAULT_OUTPUT_DIR))
        mode = _str_choice(args.mode, defaults.get("mode"), BUILD_MODE_NIX)
        if mode not in BUILD_MODES:
            raise ValueError(f"Unknown build mode: {mode}")
        max_concurrency = _int_choice(args.max_concurrency, defaults.get("max_concurrency"), fallback=DEFAULT_MAX_CONCURRENCY)
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        strict = _bool_choice(args.strict, defaults.get("strict"), fallback=False)
        targets = select_targets(_parse_list(args.targets) or _parse_list(defaults.get("targets")))
    except ValueError as exc:
        _print_json({"status": "failed", "errors": [str(exc)]})
        return 1

    # the output directory is wiped before building
    if output_dir == workspace or output_dir in workspace.parents:
        _print_json({"status": "failed", "errors": [f"output directory {output_dir} must not contain workspace {workspace}"]})
        return 1

    if mode == BUILD_MODE_PREBUILT:
        prebuilt_dir = _under(workspace, _str_choice(args.prebuilt_dir, defaults.get("prebuilt_dir"), DEFAULT_PREBUILT_DIR))
        if prebuilt_dir == output_dir or output_dir in prebuilt_dir.parents:
            _print_json({"status": "failed", "errors": [f"prebuilt directory {prebuilt_dir} is inside output directory {output_dir}"]})
            return 1
        toolchain: Any = PrebuiltToolchain(prebuilt_dir)
    else:
        nix_bin = _str_choice(args.nix_bin, os.environ.get(ENV_NIX_BIN, ""), defaults.get("nix_bin"), DEFAULT_NIX_BIN)
        toolchain = NixToolchain(workspace, nix_bin=nix_bin)

    report = BuildReport(run_id=_new_run_id(), output_dir=str(output_dir), mode=mode)
    report_path = output_dir / REPORT_FILENAME
    manifest = None
    try:
        manifest = build_production(
            report,
            workspace_root=workspace,
            output_dir=output_dir,
            targets=targets,
            toolchain=toolchain,
            max_concurrency=max_concurrency,
            strict=strict,
        )
    except (AdapterError, BuildError, RuntimeError, ValueError, OSError) as exc:
        logging.getLogger(__name__).error("Build failed: %s", exc)
        report.errors.append(str(exc))
        try:
            transition(report, STATE_FAILED)
        except ValueError:
            report.status = STATE_FAILED
            report.touch()
        write_report(report_path, report)
        append_event(output_dir / EVENTS_FILENAME, "build_failed", {"error": str(exc)})
        _print_json(summary(report, None, report_path))
        return 1

    write_report(report_path, report)
    _print_json(summary(report, manifest, report_path))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Build cr-sqlite for every platform and assemble the production package")
    p.add_argument("--workspace-root", default="")
    p.add_argument("--config", default="", help="JSON defaults file")
    p.add_argument("--output-dir", default="")
    p.add_argument("--mode", choices=BUILD_MODES, default="")
    p.add_argument("--prebuilt-dir", default="", help="Directory of already built binaries (prebuilt mode)")
    p.add_argument("--targets", default="", help="Comma separated targets, e.g. linux-x86_64,aarch64-darwin")
    p.add_argument("--max-concurrency", type=int, default=None)
    p.add_argument("--nix-bin", default="")
    p.add_argument("--strict", action="store_true", default=None, help="Fail unless every platform builds")
    p.add_argument("--no-strict", dest="strict", action="store_false")
    p.add_argument("--verbose", action="store_true")
    return p


def build_main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    raise SystemExit(run_build(args))


# version sync


def run_sync_version(args: argparse.Namespace) -> int:
    workspace = _workspace_root(args.workspace_root)
    pyproject = _under(workspace, args.pyproject or PYPROJECT_FILENAME)
    nix_bin = _str_choice(args.nix_bin, os.environ.get(ENV_NIX_BIN, ""), DEFAULT_NIX_BIN)

    try:
        upstream = args.upstream_version.strip() if args.upstream_version else NixToolchain(workspace, nix_bin=nix_bin).print_version()
        changed, old, new = sync_version(pyproject, upstream)
    except (AdapterError, ValueError, OSError) as exc:
        _print_json({"status": "failed", "error": str(exc)})
        return 1

    _print_json(
        {
            "status": "updated" if changed else "unchanged",
            "crsqlite_version": upstream,
            "previous_version": old,
            "version": new,
            "pyproject": str(pyproject),
        }
    )
    return 0


def build_sync_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Sync the package version with the cr-sqlite version from Nix")
    p.add_argument("--workspace-root", default="")
    p.add_argument("--pyproject", default="")
    p.add_argument("--nix-bin", default="")
    p.add_argument("--upstream-version", default="", help="Use this cr-sqlite version instead of asking Nix")
    return p


def sync_version_main(argv: Optional[List[str]] = None) -> None:
    args = build_sync_parser().parse_args(argv)
    raise SystemExit(run_sync_version(args))
