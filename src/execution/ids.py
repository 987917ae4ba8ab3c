"""Run identifiers."""

from __future__ import annotations

from datetime import datetime

RUN_ID_FORMAT = "%Y-%m-%d_%H-%M-%S"


def generate_run_id(now: datetime | None = None) -> str:
    """Timestamp id such as ``2026-10-19_14-03-22``."""
    return (now or datetime.now()).strftime(RUN_ID_FORMAT)


def suffixed_run_id(base: str, attempt: int) -> str:
    """``base`` for the first attempt, then ``base-2``, ``base-3``, ..."""
    return base if attempt <= 1 else f"{base}-{attempt}"
