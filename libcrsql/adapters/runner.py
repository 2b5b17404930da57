"""Shared subprocess runner for build tool adapters."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Optional, Sequence


class AdapterError(RuntimeError):
    pass


def _tail(text: str, limit: int = 1200) -> str:
    raw = text or ""
    return raw[-limit:]


def run_command(cmd: Sequence[str], timeout: int, cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(cwd) if cwd is not None else None,
        )
    except FileNotFoundError as exc:
        raise AdapterError(f"executable not found: {cmd[0]}") from exc
    except subprocess.TimeoutExpired as exc:
        raise AdapterError(f"command timed out after {timeout}s: {list(cmd)}") from exc


def check_command(cmd: Sequence[str], timeout: int, cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
    proc = run_command(cmd, timeout=timeout, cwd=cwd)
    if proc.returncode != 0:
        raise AdapterError(
            json.dumps(
                {
                    "cmd": list(cmd),
                    "returncode": proc.returncode,
                    "stdout": _tail(proc.stdout),
                    "stderr": _tail(proc.stderr),
                },
                ensure_ascii=False,
            )
        )
    return proc


def run_text(cmd: Sequence[str], timeout: int, cwd: Optional[Path] = None) -> str:
    proc = check_command(cmd, timeout=timeout, cwd=cwd)
    text = (proc.stdout or "").strip()
    if not text:
        raise AdapterError(f"command produced no output: {list(cmd)}")
    return text
