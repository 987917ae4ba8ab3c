"""Post-generation grounding checks for a roadmap and its prompt pack."""

from __future__ import annotations

from .models import AgentPromptPack, CodebaseSummary, Roadmap


def check_plan_grounding(
    roadmap: Roadmap,
    prompt_pack: AgentPromptPack,
    codebase: CodebaseSummary,
) -> list[str]:
    """Return warnings about a plan that strays from the codebase it targets.

    * a step modifies a file that is neither in the stage-one file list nor
      created elsewhere in the plan (skipped when the file list is empty);
    * a step has no agent prompt.
    """
    warnings: list[str] = []

    if codebase.all_files:
        repo_files = set(codebase.all_files)
        created = set(roadmap.artifacts.files_to_create)
        for step in roadmap.plan:
            created.update(step.files.create)
        for step in roadmap.plan:
            for path in step.files.modify:
                if path not in repo_files and path not in created:
                    warnings.append(
                        f'Step "{step.id}" modifies "{path}" which is not in the codebase file list'
                    )

    prompted = {p.step_id for p in prompt_pack.prompts}
    for step in roadmap.plan:
        if step.id not in prompted:
            warnings.append(f'Step "{step.id}" has no corresponding agent prompt')

    return warnings
