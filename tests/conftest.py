"""Shared test configuration and stage-directory fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.execution.config import RunConfig

STAGE1_RUN_ID = "2026-10-01_09-00-00"
STAGE2_RUN_ID = "2026-10-01_09-30-00"

REPO_FILES = ["src/pages/Home.tsx", "src/App.tsx", "src/hooks/useFeature.ts"]

PRD_TEXT = "# Feature\n\nShow the feature list on the home page."

DEFAULT_IMPACT = {
    "prd": {"hash": "abc123", "source": "prd.md"},
    "summary": {
        "areas": [
            {"area": "UI", "confidence": 0.8, "rationale": ["Home page renders the list"]},
            {"area": "Types", "confidence": 1.7, "rationale": []},
            {"area": "Nonsense", "confidence": 0.5},
        ],
    },
    "files": [
        {"path": "src/pages/Home.tsx", "score": 0.9, "role": "primary", "reasons": ["Renders feature"]},
        {"path": "src/App.tsx", "score": -0.3, "role": "context", "reasons": ["Routes"]},
    ],
    "notes": ["Suggested new file: src/types/feature.ts", "Home page is large"],
}


def pytest_addoption(parser):
    parser.addoption(
        "--run-slow", action="store_true", default=False, help="Run slow SDK tests"
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="Need --run-slow to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def _write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def output_root(tmp_path) -> Path:
    return tmp_path / "out"


@pytest.fixture
def write_stage1(output_root):
    """Factory writing a stage-one run directory; returns its path."""

    def _write(run_id: str = STAGE1_RUN_ID, files: list[str] | None = None, dna: bool = True) -> Path:
        run_dir = output_root / "pipe-1" / run_id
        lines = [json.dumps({"file": f}) for f in (REPO_FILES if files is None else files)]
        (run_dir / "indexes").mkdir(parents=True, exist_ok=True)
        (run_dir / "indexes" / "files.jsonl").write_text("\n".join(lines) + "\n", encoding="utf-8")
        if dna:
            dna_dir = run_dir / "project-dna"
            _write_json(dna_dir / "conventions.json", {"naming": "camelCase", "quotes": "single"})
            _write_json(dna_dir / "rules.json", ["No default exports", 42])
            _write_json(dna_dir / "tokens.json", {"tokens": [{"name": "primary", "value": "#112233"}]})
            _write_json(
                dna_dir / "manifest.json",
                {
                    "projectId": "demo-app",
                    "scannedAt": "2026-10-01T09:00:00Z",
                    "stack": {"react": True, "vue": False, "typescript": True},
                    "fingerprint": {"totalFiles": 3},
                },
            )
            (dna_dir / "copilot-instructions.md").write_text("Prefer function components.", encoding="utf-8")
            _write_json(dna_dir / "system-prompts.json", {"reviewer": "Be strict about types"})
        return run_dir

    return _write


@pytest.fixture
def write_stage2(output_root):
    """Factory writing a stage-two run directory; returns its path."""

    def _write(
        run_id: str = STAGE2_RUN_ID,
        impact: dict | None = None,
        stage1_dir: Path | None = None,
        prd_text: str | None = PRD_TEXT,
        with_impact: bool = True,
    ) -> Path:
        run_dir = output_root / "pipe-2" / run_id
        run_dir.mkdir(parents=True, exist_ok=True)
        if with_impact:
            _write_json(run_dir / "impact_analysis.json", DEFAULT_IMPACT if impact is None else impact)
        meta = {}
        if prd_text is not None:
            (run_dir / "prd.md").write_text(prd_text, encoding="utf-8")
            meta["prdPath"] = "prd.md"
        if stage1_dir is not None:
            meta["phase1OutDir"] = str(stage1_dir)
        if meta:
            _write_json(run_dir / "phase2_run.json", meta)
        return run_dir

    return _write


@pytest.fixture
def stage_dirs(write_stage1, write_stage2) -> tuple[Path, Path]:
    stage1 = write_stage1()
    stage2 = write_stage2(stage1_dir=stage1)
    return stage1, stage2


@pytest.fixture
def config(output_root) -> RunConfig:
    return RunConfig(output_root=output_root, retry_base_delay_seconds=0)
