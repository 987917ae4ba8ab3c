"""Derive the final roadmap from validated plan steps."""

from __future__ import annotations

from datetime import datetime, timezone

from .models import (
    ImpactArea,
    PlanStep,
    PrdRef,
    RiskItem,
    Roadmap,
    RoadmapArtifacts,
    VerificationItem,
)

LARGE_BLAST_RADIUS = 20
MODERATE_BLAST_RADIUS = 5

ACCEPTANCE_CRITERIA = [
    "All TypeScript compilation errors are resolved (tsc exits 0)",
    "All existing tests continue to pass after changes",
    "New functionality matches PRD requirements",
]

VERIFICATION = [
    ("typecheck", ["Run: npx tsc --noEmit", "Expected: 0 errors"]),
    ("lint", ["Run: npx eslint src --ext .ts,.tsx", "Expected: 0 errors"]),
    ("unit_test", ["Run: npm test", "Expected: all tests pass"]),
]


def aggregate_files(steps: list[PlanStep]) -> RoadmapArtifacts:
    """Union every step's file lists, keeping first-seen order."""
    modify: dict[str, None] = {}
    create: dict[str, None] = {}
    touch: dict[str, None] = {}
    for step in steps:
        modify.update(dict.fromkeys(step.files.modify))
        create.update(dict.fromkeys(step.files.create))
        touch.update(dict.fromkeys(step.files.touch))
    return RoadmapArtifacts(
        files_to_modify=list(modify),
        files_affected=list(touch),
        files_to_create=list(create),
    )


def derive_risks(steps: list[PlanStep], total_files: int) -> list[RiskItem]:
    """Apply the risk rules. Rules are independent; every matching rule fires."""
    risks: list[RiskItem] = []
    if total_files > LARGE_BLAST_RADIUS:
        risks.append(
            RiskItem(
                severity="high",
                risk=f"Large blast radius: {total_files} files affected",
                mitigation=["Consider phased rollout", "Thorough code review required"],
            )
        )
    if any(step.area is ImpactArea.AUTH for step in steps):
        risks.append(
            RiskItem(
                severity="high",
                risk="Auth changes can break access control",
                mitigation=["Test with multiple user roles", "Security review required"],
            )
        )
    if MODERATE_BLAST_RADIUS < total_files <= LARGE_BLAST_RADIUS:
        risks.append(
            RiskItem(
                severity="medium",
                risk=f"Moderate blast radius: {total_files} files",
                mitigation=["Incremental testing after each subtask"],
            )
        )
    return risks


def synthesize_roadmap(
    steps: list[PlanStep],
    prd: PrdRef,
    engine_name: str,
    now: datetime | None = None,
) -> Roadmap:
    """Build the roadmap document for an ordered list of validated steps."""
    artifacts = aggregate_files(steps)
    areas = {step.area for step in steps}
    total_hours = sum(step.duration_hours for step in steps)
    generated_at = (now or datetime.now(timezone.utc)).isoformat()

    return Roadmap(
        prd=prd,
        generated_at=generated_at,
        plan=list(steps),
        artifacts=artifacts,
        acceptance_criteria=list(ACCEPTANCE_CRITERIA),
        verification=[
            VerificationItem(type=kind, instructions=list(instructions))
            for kind, instructions in VERIFICATION
        ],
        risks=derive_risks(steps, artifacts.total_files),
        open_questions=[],
        notes=[
            f"Generated by {engine_name}",
            f"{len(steps)} implementation subtasks across {len(areas)} areas",
            f"Total estimated duration: {total_hours:g} hours",
        ],
    )
