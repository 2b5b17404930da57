"""Shared constants for libcrsql packaging and resolution."""

from __future__ import annotations

from pathlib import Path

PACKAGE_NAME = "libcrsql"
BASE_NAME = "crsqlite"

ENV_LIB_DIR = "LIBCRSQL_LIB_DIR"
ENV_WORKSPACE_ROOT = "LIBCRSQL_WORKSPACE"
ENV_BUILD_CONFIG = "LIBCRSQL_BUILD_CONFIG"
ENV_NIX_BIN = "LIBCRSQL_NIX_BIN"

PACKAGE_LIB_DIR = Path(__file__).resolve().parent.parent / "lib"

DEFAULT_BUILD_CONFIG = Path("libcrsql.build.json")
DEFAULT_OUTPUT_DIR = "dist"
DEFAULT_PREBUILT_DIR = "lib"
DEFAULT_NIX_BIN = "nix"
DEFAULT_MAX_CONCURRENCY = 2
DEFAULT_BUILD_TIMEOUT = 3600
DEFAULT_QUERY_TIMEOUT = 120

LIB_DIRNAME = "lib"
MANIFEST_FILENAME = "package_manifest.json"
REPORT_FILENAME = "build_report.json"
EVENTS_FILENAME = "build_events.jsonl"
README_FILENAME = "README.md"
PYPROJECT_FILENAME = "pyproject.toml"

BUILD_MODE_NIX = "nix"
BUILD_MODE_PREBUILT = "prebuilt"
BUILD_MODES = (BUILD_MODE_NIX, BUILD_MODE_PREBUILT)
