"""Domain models for the run workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.planning.models import (
        AgentPromptPack,
        CodebaseSummary,
        ImpactSummary,
        PlanStep,
        Roadmap,
    )


class RunStatus(Enum):
    CREATED = "created"
    LOADING_INPUTS = "loading_inputs"
    GENERATING_SUBTASKS = "generating_subtasks"
    GENERATING_PROMPTS = "generating_prompts"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETE, RunStatus.ERROR)


@dataclass
class RunTransition:
    from_status: RunStatus
    to_status: RunStatus
    timestamp: datetime
    reason: str | None = None


@dataclass
class RunSession:
    """Mutable state of one pipeline run.

    Only the runner driving the run writes to it; status queries read it
    through the store.
    """

    run_id: str
    stage1_run_id: str
    stage1_dir: Path
    stage2_run_id: str
    stage2_dir: Path
    output_dir: Path
    status: RunStatus = RunStatus.CREATED
    created_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None
    error: str | None = None

    codebase: CodebaseSummary | None = None
    impact: ImpactSummary | None = None
    prd_text: str | None = None

    steps: list[PlanStep] | None = None
    roadmap: Roadmap | None = None
    prompt_pack: AgentPromptPack | None = None

    output_written: bool = False
    transitions: list[RunTransition] = field(default_factory=list)
