"""Prompt assembly for subtask generation and agent prompt-pack generation.

Everything here is a pure function of its arguments: the same summaries and
PRD text always render the same request.
"""

from __future__ import annotations

import json

from src.generation.types import GenerationRequest

from .models import CodebaseSummary, ImpactArea, ImpactSummary, PlanStep

SUBTASKS_LABEL = "generate_subtasks"
PROMPTS_LABEL = "generate_prompts"

MAX_PRD_CHARS = 3000
MAX_PACK_PRD_CHARS = 2000
MAX_FILES = 150
MAX_CONTEXT_ENTRIES = 20
MAX_VALUE_CHARS = 150

# Lower runs earlier. The model is asked to order subtasks by these hints.
ORDER_HINTS: dict[ImpactArea, int] = {
    ImpactArea.TYPES: 0,
    ImpactArea.BUILD_CONFIG: 0,
    ImpactArea.API_SERVICE: 1,
    ImpactArea.STATE: 2,
    ImpactArea.HOOKS: 3,
    ImpactArea.ROUTING: 4,
    ImpactArea.UI: 4,
    ImpactArea.STYLING: 5,
    ImpactArea.TESTS: 6,
}


def _dump(value) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _ordering_policy() -> str:
    return "\n".join(
        f"   - {area.value} (order {hint})" for area, hint in ORDER_HINTS.items()
    )


_AREA_CHOICES = " | ".join(
    f'"{area.value}"' for area in ImpactArea if area is not ImpactArea.UNKNOWN
)

SUBTASK_SYSTEM_PROMPT = """\
You are a senior technical architect creating a step-by-step implementation \
plan for a feature described in a PRD. You have the full codebase context, \
impact analysis, and clarifying Q&A from the PM.

Break the work into ordered, dependency-aware subtasks that a developer (or \
coding AI agent) can execute sequentially.

CRITICAL RULES:

1. GROUNDING: Every file path you reference MUST come from the provided file \
list or be a new file following existing folder conventions.

2. ORDERING: Subtasks must be topologically ordered by dependency. Lower \
order runs first:
{ordering}

3. DURATION: Estimate realistic development time in hours for each subtask:
   - Small type changes: 0.5-1h
   - Service/API changes: 1-3h
   - UI component work: 1-4h
   - Complex state management: 2-4h
   - Integration/test work: 1-3h

4. GRANULARITY: Each subtask should be completable in a single coding \
session (0.5-8 hours). Break larger work into multiple subtasks.

5. AREAS: Classify each subtask into exactly one area:
   {areas}

6. KIND: Classify each subtask:
   "create" | "modify" | "refactor" | "config" | "test" | "docs"

7. FILES: For each subtask, specify:
   - modify: files that need direct changes
   - create: new files to create
   - touch: related files the developer should be aware of (blast radius)

8. Generate between 3 and 15 subtasks.

You MUST respond with ONLY a valid JSON object, no prose and no code fences:
{example}
"""

SUBTASK_EXAMPLE = {
    "subtasks": [
        {
            "id": "step-<area>-<number>",
            "title": "Short descriptive title",
            "description": "Detailed description of what needs to be done",
            "area": "<ImpactArea>",
            "kind": "<StepKind>",
            "files": {
                "modify": ["path/to/file.ts"],
                "create": ["path/to/new-file.ts"],
                "touch": ["path/to/related-file.ts"],
            },
            "dependsOnStepIds": ["step-types-1"],
            "rationale": ["Why this step is needed"],
            "implementationChecklist": ["Specific task 1", "Specific task 2"],
            "doneWhen": ["Observable success condition 1"],
            "durationHours": 2,
        }
    ]
}

SUBTASK_USER_TEMPLATE = """\
## PRD
{prd}

## Codebase Context
{codebase_context}

## Impact Analysis
{impact_context}

## Available File Paths ({total_files} total, showing first {shown_files})
{file_list}

Generate the implementation subtasks as ordered JSON. Return ONLY valid JSON.
"""

PROMPT_PACK_SYSTEM_PROMPT = """\
You are creating detailed coding prompts for an AI coding agent. For each \
implementation subtask, generate a complete, self-contained prompt that the \
agent can use to implement that specific piece of work.

Each prompt must be GROUNDED in the actual codebase, referencing real file \
paths, real conventions, and real design tokens.

For each subtask, produce an AgentPrompt with:

1. **system**: A concise system instruction telling the agent its role, the \
codebase stack, and the current focus area
2. **context**: Contains:
   - prdSummary: First 500 chars of the PRD
   - impactedFiles: The files this subtask touches (from modify + create)
   - relevantRepoConventions: Applicable coding conventions
   - tokensOrConstraints: Design tokens and constraints
   - evidence: Why these files are affected
3. **instructions**: Ordered list of specific coding tasks (start from \
implementationChecklist, add detail)
4. **guardrails**: Do/don't rules to constrain the agent:
   - DO NOT modify files outside this step's scope
   - DO NOT remove existing exports without checking consumers
   - ALWAYS follow existing code style
   - Area-specific rules (e.g. "use the existing API client" for API work)
5. **deliverables**: What the agent should produce (modified files, new \
files, test results)

Use each subtask's "id" as the prompt's "stepId".

You MUST respond with ONLY a valid JSON object, no prose and no code fences:
{example}
"""

PROMPT_PACK_EXAMPLE = {
    "prompts": [
        {
            "stepId": "step-types-1",
            "title": "Step title",
            "system": "You are a senior software engineer...",
            "context": {
                "prdSummary": "...",
                "impactedFiles": ["file1.ts"],
                "relevantRepoConventions": ["convention1"],
                "tokensOrConstraints": ["token1"],
                "evidence": ["reason1"],
            },
            "instructions": ["task1", "task2"],
            "guardrails": ["rule1", "rule2"],
            "deliverables": ["deliverable1"],
        }
    ]
}

PROMPT_PACK_USER_TEMPLATE = """\
## PRD
{prd}

## Codebase Context
{codebase_context}

## Repo Conventions
{conventions}

## Architectural Rules
{rules}

## Design Tokens
{tokens}

## Subtasks to Generate Prompts For
{subtasks}

Generate one AgentPrompt per subtask. Return ONLY valid JSON.
"""


# ---------------------------------------------------------------------------
# Context rendering
# ---------------------------------------------------------------------------

def _rule_list(rules: dict) -> list[str]:
    listed = rules.get("rules")
    if isinstance(listed, list):
        return [r if isinstance(r, str) else _dump(r) for r in listed]
    return [f"{k}: {_dump(v)}" for k, v in rules.items()]


def build_codebase_context(codebase: CodebaseSummary) -> str:
    """Render stage-one facts as markdown sections."""
    sections: list[str] = []

    if codebase.manifest:
        stack = codebase.manifest.get("stack")
        techs = [tech for tech, present in stack.items() if present] if isinstance(stack, dict) else []
        fingerprint = codebase.manifest.get("fingerprint")
        total = fingerprint.get("totalFiles", "unknown") if isinstance(fingerprint, dict) else "unknown"
        sections.append(
            "\n".join([
                "## Project Overview",
                f"Stack: {', '.join(techs) if techs else 'unknown'}",
                f"Total files: {total}",
            ])
        )

    if codebase.conventions:
        lines = [
            f"  {k}: {_dump(v)}"
            for k, v in list(codebase.conventions.items())[:MAX_CONTEXT_ENTRIES]
        ]
        sections.append("\n".join(["## Conventions", *lines]))

    rules = _rule_list(codebase.rules)
    if rules:
        sections.append("\n".join(["## Architectural Rules", *(f"- {r}" for r in rules)]))

    if codebase.tokens:
        lines = [
            f"  {k}: {v}"
            for k, v in list(codebase.tokens.items())[:MAX_CONTEXT_ENTRIES]
        ]
        sections.append("\n".join(["## Design Tokens", *lines]))

    if codebase.all_files:
        lines = [f"  {f}" for f in codebase.all_files[:MAX_FILES]]
        sections.append("\n".join(["## All File Paths", *lines]))

    if codebase.guidance.strip():
        sections.append(
            "\n".join([
                "## Project Guidelines",
                codebase.guidance.strip(),
            ])
        )

    if codebase.directives:
        lines = [
            f"  {k}: {v if isinstance(v, str) else _dump(v)}"
            for k, v in codebase.directives.items()
        ]
        sections.append("\n".join(["## Behaviour Directives", *lines]))

    return "\n\n".join(sections)


def build_impact_context(impact: ImpactSummary) -> str:
    """Render stage-two facts as markdown sections."""
    sections: list[str] = [
        "\n".join([
            "## Impact Analysis Summary",
            f"Primary files: {len(impact.primary_files)}",
            f"Secondary files: {len(impact.secondary_files)}",
            f"Total impacted: {len(impact.files)}",
        ])
    ]

    if impact.areas:
        lines = [
            f"  {a.area.value}: {a.confidence * 100:.0f}% confidence - {'; '.join(a.rationale)}"
            for a in impact.areas
        ]
        sections.append("\n".join(["## Impacted Areas", *lines]))

    ranked = sorted(impact.files, key=lambda f: f.score, reverse=True)
    lines = [
        f"  [{f.score:.2f}] {f.role} - {f.path}: {'; '.join(f.reasons)}"
        for f in ranked
    ]
    sections.append("\n".join(["## Impacted Files (by score)", *lines]))

    if impact.new_files_suggested:
        sections.append(
            "\n".join(["## Suggested New Files", *(f"  {f}" for f in impact.new_files_suggested)])
        )

    if impact.questions and impact.answers:
        qa = []
        for question in impact.questions:
            answer = impact.answer_for(question.id)
            qa.append(f"Q: {question.question_text}\nA: {answer.text if answer else 'Not answered'}")
        sections.append("\n\n".join(["## Clarifying Q&A", *qa]))

    if impact.notes:
        sections.append("\n".join(["## Analysis Notes", *(f"- {n}" for n in impact.notes)]))

    return "\n\n".join(sections)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

def build_subtask_prompt(
    prd_text: str | None,
    codebase: CodebaseSummary,
    impact: ImpactSummary,
) -> GenerationRequest:
    system = SUBTASK_SYSTEM_PROMPT.format(
        ordering=_ordering_policy(),
        areas=_AREA_CHOICES,
        example=json.dumps(SUBTASK_EXAMPLE, indent=2),
    )
    shown = codebase.all_files[:MAX_FILES]
    user = SUBTASK_USER_TEMPLATE.format(
        prd=prd_text[:MAX_PRD_CHARS] if prd_text else "(PRD text not available - use impact analysis for context)",
        codebase_context=build_codebase_context(codebase),
        impact_context=build_impact_context(impact),
        total_files=len(codebase.all_files),
        shown_files=len(shown),
        file_list="\n".join(shown),
    )
    return GenerationRequest(system=system, user=user, label=SUBTASKS_LABEL)


def _capped_lines(entries: list[tuple[str, str]]) -> str:
    lines = [f"{k}: {v[:MAX_VALUE_CHARS]}" for k, v in entries[:MAX_CONTEXT_ENTRIES]]
    return "\n".join(lines) if lines else "None extracted"


def build_prompt_pack_prompt(
    steps: list[PlanStep],
    prd_text: str | None,
    codebase: CodebaseSummary,
) -> GenerationRequest:
    system = PROMPT_PACK_SYSTEM_PROMPT.format(
        example=json.dumps(PROMPT_PACK_EXAMPLE, indent=2),
    )
    conventions = [(k, _dump(v)) for k, v in codebase.conventions.items()]
    tokens = [(k, str(v)) for k, v in codebase.tokens.items()]
    rules = [r[:MAX_VALUE_CHARS] for r in _rule_list(codebase.rules)[:MAX_CONTEXT_ENTRIES]]

    user = PROMPT_PACK_USER_TEMPLATE.format(
        prd=prd_text[:MAX_PACK_PRD_CHARS] if prd_text else "(PRD text not available)",
        codebase_context=build_codebase_context(codebase),
        conventions=_capped_lines(conventions),
        rules="\n".join(f"- {r}" for r in rules) if rules else "None extracted",
        tokens=_capped_lines(tokens),
        subtasks=_dump([step.to_dict() for step in steps]),
    )
    return GenerationRequest(system=system, user=user, label=PROMPTS_LABEL)
