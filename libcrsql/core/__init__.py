"""Core domain primitives for libcrsql."""

from .config import BASE_NAME, PACKAGE_NAME
from .errors import BuildError, LibcrsqlError, NotFoundError, UnsupportedEnvironmentError
from .models import BuildFailure, BuildReport, BuiltArtifact, PackageManifest, PlatformTarget, TargetResult
from .platforms import PLATFORM_TARGETS

__all__ = [
    "BASE_NAME",
    "PACKAGE_NAME",
    "PLATFORM_TARGETS",
    "BuildError",
    "BuildFailure",
    "BuildReport",
    "BuiltArtifact",
    "LibcrsqlError",
    "NotFoundError",
    "PackageManifest",
    "PlatformTarget",
    "TargetResult",
    "UnsupportedEnvironmentError",
]
