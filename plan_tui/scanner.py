"""Scan the stage-three output root for completed runs."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from src.execution.artifacts import (
    PROMPT_PACK_FILE,
    ROADMAP_FILE,
    RUN_META_FILE,
    RunMetadata,
    read_prompt_pack,
    read_roadmap,
    read_run_metadata,
)
from src.planning.models import AgentPromptPack, Roadmap

logger = logging.getLogger(__name__)


@dataclass
class PlanRunInfo:
    run_id: str
    path: Path  # the run's output directory
    roadmap: Roadmap
    prompt_pack: AgentPromptPack
    metadata: RunMetadata | None = None

    @property
    def label(self) -> str:
        steps = len(self.roadmap.plan)
        return f"{self.run_id} ({steps} step{'s' if steps != 1 else ''}, {self.roadmap.total_duration_hours:g}h)"


def load_plan_run(run_dir: Path) -> PlanRunInfo | None:
    """Read one run directory. Returns None when it is not a completed run."""
    roadmap_path = run_dir / ROADMAP_FILE
    pack_path = run_dir / PROMPT_PACK_FILE
    if not roadmap_path.is_file() or not pack_path.is_file():
        return None

    try:
        roadmap = read_roadmap(roadmap_path)
        pack = read_prompt_pack(pack_path)
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning("Skipping unreadable run %s: %s", run_dir, e)
        return None

    metadata = None
    meta_path = run_dir / RUN_META_FILE
    if meta_path.is_file():
        try:
            metadata = read_run_metadata(meta_path)
        except (OSError, json.JSONDecodeError, KeyError) as e:
            logger.warning("Ignoring unreadable metadata in %s: %s", run_dir, e)

    return PlanRunInfo(
        run_id=run_dir.name, path=run_dir, roadmap=roadmap, prompt_pack=pack, metadata=metadata,
    )


def scan_plan_runs(output_dir: Path) -> list[PlanRunInfo]:
    """Completed runs under ``output_dir``, newest run id first."""
    if not output_dir.is_dir():
        return []
    runs = []
    run_dirs = [p for p in output_dir.iterdir() if p.is_dir() and not p.name.startswith(".")]
    for run_dir in sorted(run_dirs, reverse=True):
        info = load_plan_run(run_dir)
        if info is not None:
            runs.append(info)
    return runs
