"""Tests for the plan grounding check."""

from __future__ import annotations

from src.planning.grounding import check_plan_grounding
from src.planning.models import (
    AgentPrompt,
    AgentPromptPack,
    CodebaseSummary,
    PlanStep,
    PrdRef,
    StepFiles,
)
from src.planning.synthesizer import synthesize_roadmap


def _roadmap(*steps: PlanStep):
    return synthesize_roadmap(list(steps), PrdRef(hash="h"), "engine")


def _pack(*step_ids: str) -> AgentPromptPack:
    return AgentPromptPack(generated_at="now", prompts=[AgentPrompt(step_id=s) for s in step_ids])


def _step(step_id: str, modify=(), create=()) -> PlanStep:
    return PlanStep(
        id=step_id, title=step_id, description=step_id,
        files=StepFiles(modify=list(modify), create=list(create)),
    )


def test_grounded_plan_has_no_warnings():
    codebase = CodebaseSummary(all_files=["src/a.ts"])
    roadmap = _roadmap(_step("one", modify=["src/a.ts"]))
    assert check_plan_grounding(roadmap, _pack("one"), codebase) == []


def test_unknown_modified_file_is_reported():
    codebase = CodebaseSummary(all_files=["src/a.ts"])
    roadmap = _roadmap(_step("one", modify=["src/missing.ts"]))
    warnings = check_plan_grounding(roadmap, _pack("one"), codebase)
    assert warnings == ['Step "one" modifies "src/missing.ts" which is not in the codebase file list']


def test_file_created_by_an_earlier_step_is_grounded():
    codebase = CodebaseSummary(all_files=["src/a.ts"])
    roadmap = _roadmap(_step("one", create=["src/new.ts"]), _step("two", modify=["src/new.ts"]))
    assert check_plan_grounding(roadmap, _pack("one", "two"), codebase) == []


def test_file_check_skipped_without_file_list():
    roadmap = _roadmap(_step("one", modify=["anything.ts"]))
    assert check_plan_grounding(roadmap, _pack("one"), CodebaseSummary()) == []


def test_step_without_prompt_is_reported():
    roadmap = _roadmap(_step("one"), _step("two"))
    warnings = check_plan_grounding(roadmap, _pack("one"), CodebaseSummary())
    assert warnings == ['Step "two" has no corresponding agent prompt']
