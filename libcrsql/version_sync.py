"""Keep the package version aligned with the bundled cr-sqlite release."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Tuple

_SECTION_RE = re.compile(r"^\[([^\]]+)\]\s*$", re.M)
_VERSION_RE = re.compile(r'^(version\s*=\s*")([^"]*)(")', re.M)


def base_version(version: str) -> str:
    """Strip a packaging suffix: ``0.16.3.post2`` and ``0.16.3-2`` give ``0.16.3``."""
    text = (version or "").strip()
    for sep in (".post", "-"):
        if sep in text:
            return text.split(sep, 1)[0]
    return text


def plan_version(current: str, upstream: str) -> str:
    """Version the package should carry for a given upstream cr-sqlite release.

    A matching base keeps the current version, including any packaging
    suffix. A new upstream release restarts at ``{upstream}.post1``.
    """
    upstream = upstream.strip()
    if not upstream:
        raise ValueError("upstream version is empty")
    if base_version(current) == upstream:
        return current
    return f"{upstream}.post1"


def _project_span(text: str) -> Optional[Tuple[int, int]]:
    sections = list(_SECTION_RE.finditer(text))
    for index, match in enumerate(sections):
        if match.group(1).strip() != "project":
            continue
        end = sections[index + 1].start() if index + 1 < len(sections) else len(text)
        return match.end(), end
    return None


def read_project_version(pyproject_path: Path) -> str:
    text = pyproject_path.read_text(encoding="utf-8")
    span = _project_span(text)
    if span is None:
        raise ValueError(f"No [project] table in {pyproject_path}")
    match = _VERSION_RE.search(text, span[0], span[1])
    if match is None:
        raise ValueError(f"No static version in [project] of {pyproject_path}")
    return match.group(2)


def sync_version(pyproject_path: Path, upstream: str) -> Tuple[bool, str, str]:
    """Rewrite the ``[project]`` version in place. Returns ``(changed, old, new)``."""
    text = pyproject_path.read_text(encoding="utf-8")
    span = _project_span(text)
    if span is None:
        raise ValueError(f"No [project] table in {pyproject_path}")
    match = _VERSION_RE.search(text, span[0], span[1])
    if match is None:
        raise ValueError(f"No static version in [project] of {pyproject_path}")

    current = match.group(2)
    new = plan_version(current, upstream)
    if new == current:
        return False, current, current

    updated = text[: match.start(2)] + new + text[match.end(2) :]
    pyproject_path.write_text(updated, encoding="utf-8")
    return True, current, new
