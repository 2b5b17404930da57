"""Error types raised by libcrsql."""

from __future__ import annotations

from typing import List, Optional, Sequence


class LibcrsqlError(Exception):
    pass


class NotFoundError(LibcrsqlError):
    """No bundled extension matches the requested platform.

    Carries the detected platform, the canonical file name that was expected and,
    when the library directory exists, the platforms that are actually bundled.
    """

    def __init__(
        self,
        os_name: str,
        arch: str,
        expected_name: str,
        available_platforms: Optional[Sequence[str]] = None,
        supported_targets: Sequence[str] = (),
    ) -> None:
        self.os = os_name
        self.arch = arch
        self.expected_name = expected_name
        self.available_platforms: Optional[List[str]] = (
            list(available_platforms) if available_platforms is not None else None
        )
        self.supported_targets = list(supported_targets)
        super().__init__(self._message())

    def _message(self) -> str:
        parts = [
            f"CR-SQLite extension not found for {self.os}/{self.arch}.",
            f"Expected: {self.expected_name}.",
        ]
        if self.available_platforms is not None:
            available = ", ".join(self.available_platforms) or "none"
            parts.append(f"Available platforms: {available}.")
        if self.supported_targets:
            parts.append(f"This package supports: {', '.join(self.supported_targets)}.")
        return " ".join(parts)

    def __str__(self) -> str:
        return self._message()


class UnsupportedEnvironmentError(LibcrsqlError, RuntimeError):
    pass


class BuildError(LibcrsqlError, RuntimeError):
    """Raised when a build batch cannot produce a usable package."""
