"""Pipeline runner: drives one run from its inputs to its written outputs."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import datetime, timezone

from src.execution.artifacts import write_run_output
from src.execution.config import RunConfig
from src.generation.protocol import TextGenerator
from src.planning.exceptions import EmptyPlanError
from src.planning.grounding import check_plan_grounding
from src.planning.loader import load_codebase_summary, load_impact_summary
from src.planning.models import AgentPrompt, AgentPromptPack, PlanStep
from src.planning.ordering import order_steps, prune_dangling_dependencies
from src.planning.prompts import build_prompt_pack_prompt, build_subtask_prompt
from src.planning.synthesizer import synthesize_roadmap
from src.planning.validation import (
    coerce_agent_prompts,
    coerce_plan_steps,
    parse_generation_output,
)
from src.workflow.interface import RunStore
from src.workflow.models import RunSession, RunStatus

logger = logging.getLogger(__name__)

SUBTASKS_KEY = "subtasks"
PROMPTS_KEY = "prompts"


class PipelineRunner:
    """Runs the loading, subtask, prompt and output stages for one session.

    The runner is the only writer of a session while it runs. Any exception
    moves the session to ``error`` and nothing is written to disk.
    """

    def __init__(
        self,
        store: RunStore,
        generator: TextGenerator,
        config: RunConfig | None = None,
    ):
        self._store = store
        self._generator = generator
        self._config = config or RunConfig()

    async def run(self, run_id: str) -> RunSession:
        try:
            await self._execute(run_id)
        except Exception as exc:
            message = f"Pipeline failed: {exc}"
            logger.error("Run %s failed: %s", run_id, exc)
            session = await self._store.get(run_id)
            if not session.status.is_terminal:
                await self._store.transition(run_id, RunStatus.ERROR, reason=message)
        return await self._store.get(run_id)

    async def _execute(self, run_id: str) -> None:
        session = await self._store.transition(run_id, RunStatus.LOADING_INPUTS)
        await self._load_inputs(session)
        session = await self._store.get(run_id)

        await self._store.transition(run_id, RunStatus.GENERATING_SUBTASKS)
        steps = await self._generate_steps(session)
        await self._store.update(run_id, steps=steps)

        await self._store.transition(run_id, RunStatus.GENERATING_PROMPTS)
        prompts = await self._generate_prompts(session, steps)

        pack = AgentPromptPack(
            generated_at=datetime.now(timezone.utc).isoformat(),
            prompts=prompts,
        )
        roadmap = synthesize_roadmap(steps, session.impact.prd, self._generator.name)
        for warning in check_plan_grounding(roadmap, pack, session.codebase):
            logger.warning("Run %s: %s", run_id, warning)
        # Results reach the store only once they are on disk.
        finished = dataclasses.replace(session, roadmap=roadmap, prompt_pack=pack)
        await asyncio.to_thread(write_run_output, finished, self._generator.name)
        await self._store.update(run_id, roadmap=roadmap, prompt_pack=pack, output_written=True)
        await self._store.transition(run_id, RunStatus.COMPLETE)

    async def _load_inputs(self, session: RunSession) -> None:
        codebase = await asyncio.to_thread(load_codebase_summary, session.stage1_dir)
        impact = await asyncio.to_thread(load_impact_summary, session.stage2_dir)
        for warning in codebase.warnings + impact.warnings:
            logger.warning("Run %s: %s", session.run_id, warning)

        await self._store.update(
            session.run_id,
            codebase=codebase.summary,
            impact=impact.summary,
            prd_text=impact.prd_text,
        )
        logger.info(
            "Run %s: loaded %d repo files and %d impacted files",
            session.run_id,
            len(codebase.summary.all_files),
            len(impact.summary.files),
        )

    async def _generate_steps(self, session: RunSession) -> list[PlanStep]:
        request = build_subtask_prompt(session.prd_text, session.codebase, session.impact)
        text = await self._generator.generate(request)
        raw = parse_generation_output(text, SUBTASKS_KEY)
        steps = order_steps(prune_dangling_dependencies(coerce_plan_steps(raw)))

        if not steps:
            if self._config.fail_on_empty_plan:
                raise EmptyPlanError(len(raw))
            logger.warning("Run %s: no valid subtasks generated, continuing with an empty plan", session.run_id)
        return steps

    async def _generate_prompts(
        self, session: RunSession, steps: list[PlanStep],
    ) -> list[AgentPrompt]:
        if not steps:
            logger.info("Run %s: empty plan, skipping prompt generation", session.run_id)
            return []

        request = build_prompt_pack_prompt(steps, session.prd_text, session.codebase)
        text = await self._generator.generate(request)
        prompts = coerce_agent_prompts(parse_generation_output(text, PROMPTS_KEY), steps)
        logger.info("Run %s: %d prompts for %d steps", session.run_id, len(prompts), len(steps))
        return prompts
