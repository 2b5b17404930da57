"""Build targets and host platform detection.

Only two OS buckets (darwin, linux) and two architecture buckets (x86_64,
aarch64) exist. Any other host is folded into the nearest bucket, so an
unusual platform may resolve to a missing or wrong binary.
"""

from __future__ import annotations

import platform
import re
import sys
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import BASE_NAME
from .models import PlatformTarget

OS_DARWIN = "darwin"
OS_LINUX = "linux"
ARCH_X86_64 = "x86_64"
ARCH_AARCH64 = "aarch64"

_EXTENSIONS = {OS_DARWIN: "dylib", OS_LINUX: "so"}

_ARM64_MACHINES = {"arm64", "aarch64", "aarch64_be", "armv8l", "armv8b"}

PLATFORM_TARGETS: Tuple[PlatformTarget, ...] = (
    PlatformTarget(
        os=OS_LINUX,
        arch=ARCH_X86_64,
        file_extension="so",
        build_identifier=".#packages.x86_64-linux.cr-sqlite",
        system="x86_64-linux",
        description="Intel/AMD Linux (Docker, most servers)",
    ),
    PlatformTarget(
        os=OS_LINUX,
        arch=ARCH_AARCH64,
        file_extension="so",
        build_identifier=".#packages.aarch64-linux.cr-sqlite",
        system="aarch64-linux",
        description="ARM64 Linux (Raspberry Pi 4+, AWS Graviton)",
    ),
    PlatformTarget(
        os=OS_DARWIN,
        arch=ARCH_X86_64,
        file_extension="dylib",
        build_identifier=".#packages.x86_64-darwin.cr-sqlite",
        system="x86_64-darwin",
        description="Intel Mac",
    ),
    PlatformTarget(
        os=OS_DARWIN,
        arch=ARCH_AARCH64,
        file_extension="dylib",
        build_identifier=".#packages.aarch64-darwin.cr-sqlite",
        system="aarch64-darwin",
        description="Apple Silicon Mac (M1/M2/M3)",
    ),
)


def detect_os(system: Optional[str] = None) -> str:
    raw = (system if system is not None else sys.platform).strip().lower()
    return OS_DARWIN if raw.startswith("darwin") else OS_LINUX


def detect_arch(machine: Optional[str] = None) -> str:
    raw = (machine if machine is not None else platform.machine()).strip().lower()
    return ARCH_AARCH64 if raw in _ARM64_MACHINES else ARCH_X86_64


def extension_for_os(os_name: str) -> str:
    return _EXTENSIONS.get(os_name, _EXTENSIONS[OS_LINUX])


def canonical_file_name(os_name: str, arch: str, base_name: str = BASE_NAME) -> str:
    return f"{base_name}-{os_name}-{arch}.{extension_for_os(os_name)}"


def parse_canonical_name(name: str, base_name: str = BASE_NAME) -> Optional[Tuple[str, str]]:
    """Return ``(os, arch)`` for a canonical artifact file name, else ``None``."""
    pattern = re.compile(
        rf"^{re.escape(base_name)}-({OS_DARWIN}|{OS_LINUX})-({ARCH_X86_64}|{ARCH_AARCH64})\.(so|dylib)$"
    )
    match = pattern.match(name)
    if not match:
        return None
    os_name, arch, ext = match.groups()
    if ext != extension_for_os(os_name):
        return None
    return os_name, arch


def validate_targets(targets: Sequence[PlatformTarget]) -> List[PlatformTarget]:
    if not targets:
        raise ValueError("At least one platform target is required")
    seen = set()
    out: List[PlatformTarget] = []
    for target in targets:
        key = (target.os, target.arch)
        if key in seen:
            raise ValueError(f"Duplicate platform target: {target.slug}")
        seen.add(key)
        out.append(target)
    return out


def select_targets(names: Iterable[str], targets: Sequence[PlatformTarget] = PLATFORM_TARGETS) -> List[PlatformTarget]:
    """Pick targets by slug (``linux-x86_64``) or Nix system (``x86_64-linux``)."""
    wanted: List[str] = []
    for part in names:
        token = str(part).strip().lower()
        if token and token not in wanted:
            wanted.append(token)
    if not wanted:
        return list(targets)

    selected: List[PlatformTarget] = []
    for token in wanted:
        match = next((t for t in targets if token in {t.slug, t.system}), None)
        if match is None:
            raise ValueError(f"Unknown platform target: {token}")
        selected.append(match)
    return validate_targets(selected)
