"""Status transitions for a production build run."""

from __future__ import annotations

from typing import Dict, Set

from .models import BuildReport

STATE_STARTED = "started"
STATE_CLEANED = "cleaned"
STATE_BUILDING = "building"
STATE_COMPLETED = "completed"
STATE_PARTIAL = "partial"
STATE_FAILED = "failed"

TERMINAL_STATES = {STATE_COMPLETED, STATE_PARTIAL, STATE_FAILED}

_ALLOWED_TRANSITIONS: Dict[str, Set[str]] = {
    STATE_STARTED: {STATE_CLEANED, STATE_FAILED},
    STATE_CLEANED: {STATE_BUILDING, STATE_FAILED},
    STATE_BUILDING: {STATE_COMPLETED, STATE_PARTIAL, STATE_FAILED},
    STATE_COMPLETED: set(),
    STATE_PARTIAL: set(),
    STATE_FAILED: set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in _ALLOWED_TRANSITIONS.get(current, set())


def transition(report: BuildReport, target: str) -> None:
    current = report.status
    if current == target:
        report.touch()
        return
    if not can_transition(current, target):
        raise ValueError(f"Illegal state transition: {current} -> {target}")
    report.status = target
    report.touch()
