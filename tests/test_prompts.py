"""Tests for prompt assembly."""

from __future__ import annotations

from src.planning.models import (
    AreaConfidence,
    ClarifyingAnswer,
    ClarifyingQuestion,
    CodebaseSummary,
    ImpactArea,
    ImpactFile,
    ImpactSummary,
    PlanStep,
    PrdRef,
)
from src.planning.prompts import (
    MAX_FILES,
    MAX_PRD_CHARS,
    PROMPTS_LABEL,
    SUBTASKS_LABEL,
    build_codebase_context,
    build_impact_context,
    build_prompt_pack_prompt,
    build_subtask_prompt,
)

CODEBASE = CodebaseSummary(
    all_files=["src/App.tsx", "src/pages/Home.tsx"],
    conventions={"naming": "camelCase"},
    rules={"rules": ["No default exports"]},
    tokens={"primary": "#112233"},
    manifest={"stack": {"react": True, "vue": False}, "fingerprint": {"totalFiles": 2}},
    guidance="Prefer function components.",
    directives={"reviewer": "Be strict"},
)

IMPACT = ImpactSummary(
    prd=PrdRef(hash="h"),
    files=[
        ImpactFile(path="src/App.tsx", score=0.4, role="secondary", reasons=["Routes"]),
        ImpactFile(path="src/pages/Home.tsx", score=0.9, role="primary", reasons=["Renders", "Fetches"]),
    ],
    areas=[AreaConfidence(area=ImpactArea.UI, confidence=0.8, rationale=["Page"])],
    questions=[
        ClarifyingQuestion(id="q1", question_text="Which page?"),
        ClarifyingQuestion(id="q2", question_text="Mobile?"),
    ],
    answers=[ClarifyingAnswer(question_id="q1", value="Home")],
    new_files_suggested=["src/types/feature.ts"],
    notes=["Suggested new file: src/types/feature.ts"],
)


class TestCodebaseContext:
    def test_sections(self):
        text = build_codebase_context(CODEBASE)
        assert "## Project Overview\nStack: react\nTotal files: 2" in text
        assert "## Conventions" in text and 'naming: "camelCase"' in text
        assert "- No default exports" in text
        assert "primary: #112233" in text
        assert "  src/pages/Home.tsx" in text
        assert "## Project Guidelines\nPrefer function components." in text
        assert "reviewer: Be strict" in text

    def test_empty_summary_renders_nothing(self):
        assert build_codebase_context(CodebaseSummary()) == ""

    def test_file_list_is_capped(self):
        codebase = CodebaseSummary(all_files=[f"f{i}.ts" for i in range(MAX_FILES + 10)])
        text = build_codebase_context(codebase)
        assert f"f{MAX_FILES - 1}.ts" in text
        assert f"f{MAX_FILES}.ts" not in text


class TestImpactContext:
    def test_files_ranked_by_score(self):
        text = build_impact_context(IMPACT)
        home = text.index("[0.90] primary - src/pages/Home.tsx: Renders; Fetches")
        app = text.index("[0.40] secondary - src/App.tsx: Routes")
        assert home < app

    def test_counts_and_areas(self):
        text = build_impact_context(IMPACT)
        assert "Primary files: 1\nSecondary files: 1\nTotal impacted: 2" in text
        assert "UI: 80% confidence - Page" in text
        assert "## Suggested New Files\n  src/types/feature.ts" in text

    def test_unanswered_questions(self):
        text = build_impact_context(IMPACT)
        assert "Q: Which page?\nA: Home" in text
        assert "Q: Mobile?\nA: Not answered" in text

    def test_questions_without_answers_are_omitted(self):
        impact = ImpactSummary(prd=PrdRef(hash="h"), questions=IMPACT.questions)
        assert "Clarifying Q&A" not in build_impact_context(impact)


class TestSubtaskPrompt:
    def test_request_shape(self):
        request = build_subtask_prompt("Build the feature", CODEBASE, IMPACT)
        assert request.label == SUBTASKS_LABEL
        assert "Types (order 0)" in request.system
        assert '"subtasks"' in request.system
        assert "Build the feature" in request.user
        assert "(2 total, showing first 2)" in request.user

    def test_prd_is_truncated(self):
        request = build_subtask_prompt("x" * (MAX_PRD_CHARS + 500), CODEBASE, IMPACT)
        assert "x" * MAX_PRD_CHARS in request.user
        assert "x" * (MAX_PRD_CHARS + 1) not in request.user

    def test_missing_prd_placeholder(self):
        request = build_subtask_prompt(None, CODEBASE, IMPACT)
        assert "PRD text not available" in request.user

    def test_deterministic(self):
        first = build_subtask_prompt("PRD", CODEBASE, IMPACT)
        second = build_subtask_prompt("PRD", CODEBASE, IMPACT)
        assert first == second


class TestPromptPackPrompt:
    def test_request_shape(self):
        steps = [PlanStep(id="step-ui-1", title="Render", description="Render it", area=ImpactArea.UI)]
        request = build_prompt_pack_prompt(steps, "PRD", CODEBASE)
        assert request.label == PROMPTS_LABEL
        assert '"prompts"' in request.system
        assert '"id": "step-ui-1"' in request.user
        assert 'naming: "camelCase"' in request.user
        assert "- No default exports" in request.user

    def test_empty_extractions(self):
        request = build_prompt_pack_prompt([], None, CodebaseSummary())
        assert "None extracted" in request.user
        assert "PRD text not available" in request.user
