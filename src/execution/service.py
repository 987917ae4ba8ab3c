"""Planning service: run creation and the read-only views over runs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from src.adapters.memory import InMemoryRunStore
from src.execution.config import RunConfig
from src.execution.ids import generate_run_id, suffixed_run_id
from src.execution.runner import PipelineRunner
from src.generation.protocol import TextGenerator
from src.planning.loader import InputPair, list_available_inputs
from src.planning.models import AgentPrompt, AgentPromptPack, ImpactSummary, PlanStep, Roadmap
from src.workflow.exceptions import PromptNotFoundError, RunNotReadyError
from src.workflow.interface import RunStore
from src.workflow.models import RunSession, RunStatus

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 100


@dataclass
class RunStatusReport:
    run_id: str
    status: RunStatus
    created_at: datetime
    finished_at: datetime | None = None
    error: str | None = None
    step_count: int = 0
    prompt_count: int = 0

    def to_dict(self) -> dict:
        data = {
            "runId": self.run_id,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "subtaskCount": self.step_count,
            "promptCount": self.prompt_count,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class RunResult:
    run_id: str
    roadmap: Roadmap
    prompt_pack: AgentPromptPack

    def to_dict(self) -> dict:
        return {
            "runId": self.run_id,
            "roadmap": self.roadmap.to_dict(),
            "promptPack": self.prompt_pack.to_dict(),
        }


@dataclass
class StepsView:
    steps: list[PlanStep]
    total_duration_hours: float


@dataclass
class GuidanceView:
    guidance: str
    directives: dict


class PlanningService:
    """Creates runs and answers queries about them.

    ``create_run`` returns as soon as the session is registered; the pipeline
    itself runs as a background task on the current event loop.
    """

    def __init__(
        self,
        generator: TextGenerator,
        store: RunStore | None = None,
        config: RunConfig | None = None,
    ):
        self._store = store or InMemoryRunStore()
        self._config = config or RunConfig()
        self._runner = PipelineRunner(self._store, generator, self._config)
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def store(self) -> RunStore:
        return self._store

    async def create_run(self, stage1_run_id: str, stage2_run_id: str) -> str:
        if not stage1_run_id or not stage2_run_id:
            raise ValueError("stage1_run_id and stage2_run_id are required")

        session = await self._register(stage1_run_id, stage2_run_id)
        run_id = session.run_id
        task = asyncio.create_task(self._runner.run(run_id), name=f"pipeline-{run_id}")
        self._tasks[run_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(run_id, None))
        logger.info(
            "Created run %s from stage-one %s and stage-two %s",
            run_id, stage1_run_id, stage2_run_id,
        )
        return run_id

    async def _register(self, stage1_run_id: str, stage2_run_id: str) -> RunSession:
        base = generate_run_id()
        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            run_id = suffixed_run_id(base, attempt)
            if await self._store.exists(run_id):
                continue
            session = RunSession(
                run_id=run_id,
                stage1_run_id=stage1_run_id,
                stage1_dir=self._config.stage1_root / stage1_run_id,
                stage2_run_id=stage2_run_id,
                stage2_dir=self._config.stage2_root / stage2_run_id,
                output_dir=self._config.stage3_root / run_id,
            )
            try:
                return await self._store.create(session)
            except ValueError:
                continue
        raise RuntimeError(f"Could not allocate a run id for {base}")

    async def wait_for(self, run_id: str) -> RunSession:
        """Wait for a run's background task, then return its session."""
        task = self._tasks.get(run_id)
        if task is not None:
            await asyncio.shield(task)
        return await self._store.get(run_id)

    async def get_status(self, run_id: str) -> RunStatusReport:
        session = await self._store.get(run_id)
        return RunStatusReport(
            run_id=session.run_id,
            status=session.status,
            created_at=session.created_at,
            finished_at=session.finished_at,
            error=session.error,
            step_count=len(session.steps or []),
            prompt_count=len(session.prompt_pack.prompts) if session.prompt_pack else 0,
        )

    async def get_result(self, run_id: str) -> RunResult:
        session = await self._store.get(run_id)
        if session.status is not RunStatus.COMPLETE:
            raise RunNotReadyError(run_id, session.status)
        return RunResult(
            run_id=run_id, roadmap=session.roadmap, prompt_pack=session.prompt_pack,
        )

    async def get_prompt(self, run_id: str, step_id: str) -> AgentPrompt:
        session = await self._store.get(run_id)
        if session.status is not RunStatus.COMPLETE:
            raise RunNotReadyError(run_id, session.status)
        prompt = session.prompt_pack.get(step_id)
        if prompt is None:
            raise PromptNotFoundError(run_id, step_id)
        return prompt

    async def get_steps(self, run_id: str) -> StepsView | None:
        session = await self._store.get(run_id)
        if session.steps is None:
            return None
        return StepsView(
            steps=list(session.steps),
            total_duration_hours=sum(step.duration_hours for step in session.steps),
        )

    async def get_impact(self, run_id: str) -> ImpactSummary | None:
        session = await self._store.get(run_id)
        return session.impact

    async def get_guidance(self, run_id: str) -> GuidanceView | None:
        session = await self._store.get(run_id)
        if session.codebase is None:
            return None
        return GuidanceView(
            guidance=session.codebase.guidance,
            directives=dict(session.codebase.directives),
        )

    def list_inputs(self) -> list[InputPair]:
        return list_available_inputs(self._config.stage1_root, self._config.stage2_root)
