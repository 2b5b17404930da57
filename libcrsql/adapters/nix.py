"""Adapter for building cr-sqlite through the Nix flake."""

from __future__ import annotations

import logging
from pathlib import Path

from .runner import AdapterError, check_command, run_text
from ..core.config import DEFAULT_BUILD_TIMEOUT, DEFAULT_NIX_BIN, DEFAULT_QUERY_TIMEOUT
from ..core.models import PlatformTarget

logger = logging.getLogger(__name__)


class NixToolchain:
    def __init__(
        self,
        workspace_root: Path,
        nix_bin: str = DEFAULT_NIX_BIN,
        timeout: int = DEFAULT_BUILD_TIMEOUT,
        query_timeout: int = DEFAULT_QUERY_TIMEOUT,
    ) -> None:
        self.workspace_root = workspace_root
        self.nix_bin = nix_bin
        self.timeout = timeout
        self.query_timeout = query_timeout

    def check(self) -> None:
        try:
            check_command([self.nix_bin, "build", "--version"], timeout=self.query_timeout, cwd=self.workspace_root)
        except AdapterError as exc:
            raise AdapterError("Nix not available") from exc

    def has_remote_builders(self) -> bool:
        try:
            config = run_text([self.nix_bin, "show-config"], timeout=self.query_timeout, cwd=self.workspace_root)
        except AdapterError as exc:
            logger.debug("nix show-config failed: %s", exc)
            return False
        return "builders" in config

    def build(self, target: PlatformTarget) -> None:
        if not target.build_identifier:
            raise AdapterError(f"no build identifier for {target.slug}")
        check_command(
            [self.nix_bin, "build", target.build_identifier, "--no-link"],
            timeout=self.timeout,
            cwd=self.workspace_root,
        )

    def store_path(self, target: PlatformTarget) -> Path:
        raw = run_text(
            [self.nix_bin, "eval", target.build_identifier, "--raw"],
            timeout=self.query_timeout,
            cwd=self.workspace_root,
        )
        return Path(raw)

    def output_location(self, target: PlatformTarget) -> Path:
        return self.store_path(target) / "lib"

    def print_version(self) -> str:
        return run_text([self.nix_bin, "run", ".#print-version"], timeout=self.timeout, cwd=self.workspace_root)
