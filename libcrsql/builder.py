"""Build cr-sqlite for every platform target and collect the binaries.

A toolchain is any object with ``build(target)`` and
``output_location(target) -> Path``. ``build`` raises on failure; the location
is the directory (or single file) holding the produced library.
"""

from __future__ import annotations

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from .adapters.runner import AdapterError
from .core.config import BASE_NAME, DEFAULT_MAX_CONCURRENCY, LIB_DIRNAME
from .core.models import BuildFailure, BuiltArtifact, PlatformTarget, TargetResult
from .core.platforms import validate_targets

logger = logging.getLogger(__name__)

AMBIGUOUS_OR_MISSING = "ambiguous or missing artifact"


class ArtifactLookupError(RuntimeError):
    pass


def clean_output_dir(output_dir: Path) -> Path:
    """Remove ``output_dir`` and recreate it with an empty ``lib/`` inside."""
    if output_dir.exists():
        shutil.rmtree(output_dir)
    lib_dir = output_dir / LIB_DIRNAME
    lib_dir.mkdir(parents=True, exist_ok=True)
    return lib_dir


def _is_candidate(path: Path, extension: str, marker: str) -> bool:
    return path.is_file() and marker in path.name and path.name.endswith(f".{extension}")


def find_artifact(location: Path, extension: str, marker: str = BASE_NAME) -> Path:
    if location.is_file():
        candidates = [location]
    elif location.is_dir():
        candidates = sorted(location.iterdir())
    else:
        raise ArtifactLookupError(f"{AMBIGUOUS_OR_MISSING}: {location} does not exist")

    matches = [path for path in candidates if _is_candidate(path, extension, marker)]
    if len(matches) != 1:
        names = ", ".join(p.name for p in matches) or "none"
        raise ArtifactLookupError(f"{AMBIGUOUS_OR_MISSING}: {len(matches)} matches in {location} ({names})")
    return matches[0]


def copy_artifact(source: Path, lib_dir: Path, file_name: str) -> Path:
    lib_dir.mkdir(parents=True, exist_ok=True)
    destination = lib_dir / file_name
    # copyfile follows symlinks, so store links become real files
    shutil.copyfile(source, destination)
    return destination


def build_target(target: PlatformTarget, *, lib_dir: Path, toolchain: Any, base_name: str = BASE_NAME) -> TargetResult:
    """Build, locate and copy one target. Failures are returned, not raised."""
    try:
        toolchain.build(target)
    except AdapterError as exc:
        return TargetResult(target=target, failure=BuildFailure(target=target, reason=f"build failed: {exc}"))

    try:
        location = toolchain.output_location(target)
        source = find_artifact(location, target.file_extension, marker=base_name)
        destination = copy_artifact(source, lib_dir, target.file_name(base_name))
    except (AdapterError, ArtifactLookupError, OSError) as exc:
        return TargetResult(target=target, failure=BuildFailure(target=target, reason=str(exc)))

    artifact = BuiltArtifact(
        target=target,
        file_name=destination.name,
        path=str(destination),
        source=str(source),
    )
    return TargetResult(target=target, artifact=artifact)


def build_all(
    targets: Sequence[PlatformTarget],
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    *,
    lib_dir: Path,
    toolchain: Any,
    base_name: str = BASE_NAME,
    on_result: Optional[Callable[[TargetResult], None]] = None,
) -> List[TargetResult]:
    """Build every target with at most ``max_concurrency`` builds in flight.

    Returns one result per target in the order given. A failing target never
    stops the others; deciding whether a partial set is good enough is left to
    the caller. ``on_result`` runs on the calling thread as results arrive.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
    ordered = validate_targets(targets)
    results: List[Optional[TargetResult]] = [None] * len(ordered)

    with ThreadPoolExecutor(max_workers=max_concurrency, thread_name_prefix="libcrsql-build") as pool:
        futures = {}
        for index, target in enumerate(ordered):
            logger.info("Building %s", target.label())
            future = pool.submit(build_target, target, lib_dir=lib_dir, toolchain=toolchain, base_name=base_name)
            futures[future] = index

        for future in as_completed(futures):
            index = futures[future]
            target = ordered[index]
            try:
                result = future.result()
            except Exception as exc:
                logger.exception("Unexpected error while building %s", target.slug)
                result = TargetResult(
                    target=target,
                    failure=BuildFailure(target=target, reason=f"unexpected error: {exc}"),
                )
            results[index] = result

            if result.artifact is not None:
                logger.info("Built %s -> %s", result.artifact.file_name, target.description or target.slug)
            elif result.failure is not None:
                logger.warning("Failed to build %s - will be missing from package: %s", target.label(), result.failure.reason)
            if on_result is not None:
                on_result(result)

    return [r for r in results if r is not None]


def missing_targets(results: Sequence[TargetResult]) -> List[PlatformTarget]:
    return [r.target for r in results if not r.ok]


def missing_platforms_warning(results: Sequence[TargetResult]) -> str:
    missing = missing_targets(results)
    if not missing:
        return ""
    return "Missing: " + ", ".join(t.label() for t in missing)
