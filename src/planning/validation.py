"""Decode generated JSON and coerce it into plan steps and agent prompts.

Decoding is strict: the response must be one JSON object holding the
expected array, otherwise MalformedOutputError is raised and the run fails.
Coercion is tolerant: individual entries are repaired with defaults or
dropped, never rejected wholesale. Every repair is logged.
"""

from __future__ import annotations

import json
import logging
import math
import re

from .exceptions import MalformedOutputError
from .models import (
    AgentPrompt,
    ImpactArea,
    PlanStep,
    PromptContext,
    StepFiles,
    StepKind,
)

logger = logging.getLogger(__name__)

MIN_DURATION_HOURS = 0.5
MAX_DURATION_HOURS = 40.0
DEFAULT_DURATION_HOURS = 1.0

_AREA_BY_VALUE = {area.value: area for area in ImpactArea}
_KIND_BY_VALUE = {kind.value: kind for kind in StepKind}
_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n(.*?)\n?```$", re.DOTALL)


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    return match.group(1).strip() if match else stripped


def parse_generation_output(text: str | None, key: str) -> list:
    """Return the ``key`` array of a generated JSON object.

    Raises MalformedOutputError if the text is not JSON, not an object, or
    lacks a list under ``key``.
    """
    body = _strip_code_fence(text or "")
    if not body:
        raise MalformedOutputError(key, "empty response")
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(key, f"invalid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise MalformedOutputError(key, f"expected a JSON object, got {type(data).__name__}")
    if not isinstance(data.get(key), list):
        raise MalformedOutputError(key, f"response missing '{key}' array")
    return data[key]


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------

def _has_text(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _text(value, ref: str, name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    logger.debug("%s: non-string %s coerced to empty string", ref, name)
    return ""


def _string_list(value, ref: str, name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        logger.debug("%s: %s is %s, coerced to []", ref, name, type(value).__name__)
        return []
    items = [item for item in value if isinstance(item, str)]
    if len(items) != len(value):
        logger.debug("%s: dropped %d non-string item(s) from %s", ref, len(value) - len(items), name)
    return items


def _duration(value, ref: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        if value is not None:
            logger.debug("%s: durationHours %r is not a number, defaulted to %s", ref, value, DEFAULT_DURATION_HOURS)
        return DEFAULT_DURATION_HOURS
    clamped = float(min(MAX_DURATION_HOURS, max(MIN_DURATION_HOURS, value)))
    if clamped != value:
        logger.debug("%s: durationHours %r clamped to %s", ref, value, clamped)
    return clamped


def _unique_id(candidate: str, seen: set[str]) -> str:
    if candidate not in seen:
        return candidate
    suffix = 2
    while f"{candidate}-{suffix}" in seen:
        suffix += 1
    return f"{candidate}-{suffix}"


# ---------------------------------------------------------------------------
# Plan steps
# ---------------------------------------------------------------------------

def coerce_plan_steps(raw: list) -> list[PlanStep]:
    """Turn generated subtask entries into PlanSteps.

    Entries without a title and description are dropped. The counter used in
    synthesized ids only advances for kept entries.
    """
    steps: list[PlanStep] = []
    seen_ids: set[str] = set()
    counter = 0

    for index, item in enumerate(raw):
        ref = f"subtask[{index}]"
        if not isinstance(item, dict):
            logger.debug("%s: not an object, dropped", ref)
            continue
        if not _has_text(item.get("title")) or not _has_text(item.get("description")):
            logger.debug("%s: missing title or description, dropped", ref)
            continue
        counter += 1

        area = _AREA_BY_VALUE.get(item.get("area"))
        if area is None:
            logger.debug("%s: area %r replaced with %s", ref, item.get("area"), ImpactArea.UNKNOWN.value)
            area = ImpactArea.UNKNOWN

        kind = _KIND_BY_VALUE.get(item.get("kind"))
        if kind is None:
            logger.debug("%s: kind %r replaced with %s", ref, item.get("kind"), StepKind.MODIFY.value)
            kind = StepKind.MODIFY

        raw_id = item.get("id")
        step_id = raw_id if _has_text(raw_id) else f"step-{area.slug}-{counter}"
        unique = _unique_id(step_id, seen_ids)
        if unique != step_id:
            logger.debug("%s: duplicate id %r renamed to %r", ref, step_id, unique)
        seen_ids.add(unique)

        files = item.get("files")
        if not isinstance(files, dict):
            if files is not None:
                logger.debug("%s: files is %s, coerced to empty lists", ref, type(files).__name__)
            files = {}

        steps.append(
            PlanStep(
                id=unique,
                title=item["title"],
                description=item["description"],
                area=area,
                kind=kind,
                files=StepFiles(
                    modify=_string_list(files.get("modify"), ref, "files.modify"),
                    create=_string_list(files.get("create"), ref, "files.create"),
                    touch=_string_list(files.get("touch"), ref, "files.touch"),
                ),
                depends_on_step_ids=_string_list(item.get("dependsOnStepIds"), ref, "dependsOnStepIds"),
                rationale=_string_list(item.get("rationale"), ref, "rationale"),
                implementation_checklist=_string_list(
                    item.get("implementationChecklist"), ref, "implementationChecklist",
                ),
                done_when=_string_list(item.get("doneWhen"), ref, "doneWhen"),
                duration_hours=_duration(item.get("durationHours"), ref),
            )
        )

    logger.info("Validated %d of %d generated subtasks", len(steps), len(raw))
    return steps


# ---------------------------------------------------------------------------
# Agent prompts
# ---------------------------------------------------------------------------

def coerce_agent_prompts(raw: list, steps: list[PlanStep]) -> list[AgentPrompt]:
    """Turn generated prompt entries into AgentPrompts for known steps.

    Entries whose stepId is unknown, or repeats an earlier entry, are dropped.
    """
    known_ids = {step.id for step in steps}
    prompts: list[AgentPrompt] = []
    seen: set[str] = set()

    for index, item in enumerate(raw):
        ref = f"prompt[{index}]"
        if not isinstance(item, dict):
            logger.debug("%s: not an object, dropped", ref)
            continue
        step_id = item.get("stepId")
        if not isinstance(step_id, str) or step_id not in known_ids:
            logger.debug("%s: stepId %r does not match a known step, dropped", ref, step_id)
            continue
        if step_id in seen:
            logger.debug("%s: second prompt for %s, dropped", ref, step_id)
            continue
        seen.add(step_id)

        context = item.get("context")
        if not isinstance(context, dict):
            if context is not None:
                logger.debug("%s: context is %s, coerced to defaults", ref, type(context).__name__)
            context = {}

        prompts.append(
            AgentPrompt(
                step_id=step_id,
                title=_text(item.get("title"), ref, "title"),
                system=_text(item.get("system"), ref, "system"),
                context=PromptContext(
                    prd_summary=_text(context.get("prdSummary"), ref, "context.prdSummary"),
                    impacted_files=_string_list(context.get("impactedFiles"), ref, "context.impactedFiles"),
                    relevant_repo_conventions=_string_list(
                        context.get("relevantRepoConventions"), ref, "context.relevantRepoConventions",
                    ),
                    tokens_or_constraints=_string_list(
                        context.get("tokensOrConstraints"), ref, "context.tokensOrConstraints",
                    ),
                    evidence=_string_list(context.get("evidence"), ref, "context.evidence"),
                ),
                instructions=_string_list(item.get("instructions"), ref, "instructions"),
                guardrails=_string_list(item.get("guardrails"), ref, "guardrails"),
                deliverables=_string_list(item.get("deliverables"), ref, "deliverables"),
            )
        )

    logger.info("Validated %d of %d generated agent prompts", len(prompts), len(raw))
    return prompts
