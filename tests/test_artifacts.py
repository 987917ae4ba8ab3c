"""Tests for writing and reading run output files."""

from __future__ import annotations

import json
from datetime import timedelta
from unittest.mock import patch

import pytest

from src.execution import artifacts
from src.execution.artifacts import (
    PROMPT_PACK_FILE,
    ROADMAP_FILE,
    RUN_META_FILE,
    build_run_metadata,
    read_prompt_pack,
    read_roadmap,
    read_run_metadata,
    write_run_output,
)
from src.generation.mocks import CANNED_PROMPTS, CANNED_SUBTASKS
from src.planning.models import AgentPromptPack, PlanStep, PrdRef
from src.planning.synthesizer import synthesize_roadmap
from src.workflow.models import RunSession


@pytest.fixture
def session(tmp_path) -> RunSession:
    steps = [PlanStep.from_dict(s) for s in CANNED_SUBTASKS["subtasks"]]
    return RunSession(
        run_id="2026-10-19_12-00-00",
        stage1_run_id="s1",
        stage1_dir=tmp_path / "pipe-1" / "s1",
        stage2_run_id="s2",
        stage2_dir=tmp_path / "pipe-2" / "s2",
        output_dir=tmp_path / "pipe-3" / "2026-10-19_12-00-00",
        steps=steps,
        roadmap=synthesize_roadmap(steps, PrdRef(hash="abc"), "MockTextGenerator"),
        prompt_pack=AgentPromptPack.from_dict({"generatedAt": "2026-10-19T12:00:01", **CANNED_PROMPTS}),
    )


class TestWriteRunOutput:
    def test_writes_three_files(self, session):
        paths = write_run_output(session, "MockTextGenerator")
        assert [p.name for p in paths] == [ROADMAP_FILE, PROMPT_PACK_FILE, RUN_META_FILE]
        assert all(p.parent == session.output_dir for p in paths)

    def test_documents_read_back(self, session):
        write_run_output(session, "MockTextGenerator")
        assert read_roadmap(session.output_dir / ROADMAP_FILE) == session.roadmap
        assert read_prompt_pack(session.output_dir / PROMPT_PACK_FILE) == session.prompt_pack

    def test_roadmap_is_camel_case_json(self, session):
        write_run_output(session, "MockTextGenerator")
        data = json.loads((session.output_dir / ROADMAP_FILE).read_text())
        assert data["plan"][1]["dependsOnStepIds"] == ["step-types-1"]
        assert data["artifacts"]["filesToCreate"] == ["src/types/feature.ts"]

    def test_metadata(self, session):
        write_run_output(session, "MockTextGenerator")
        meta = read_run_metadata(session.output_dir / RUN_META_FILE)
        assert meta.run_id == session.run_id
        assert meta.stage1_dir == str(session.stage1_dir)
        assert meta.output_dir == str(session.output_dir)
        assert meta.status == "success"
        assert meta.error is None
        assert meta.engine_name == "MockTextGenerator"
        assert meta.duration_ms >= 0

    def test_refuses_incomplete_session(self, session):
        session.prompt_pack = None
        with pytest.raises(ValueError, match="no roadmap or prompt pack"):
            write_run_output(session, "engine")
        assert not session.output_dir.exists()

    def test_failed_write_leaves_no_output(self, session):
        real_write = artifacts._write_json
        calls = []

        def _fail_second(path, data):
            calls.append(path.name)
            if len(calls) == 2:
                raise OSError("disk full")
            return real_write(path, data)

        with patch("src.execution.artifacts._write_json", _fail_second):
            with pytest.raises(OSError, match="disk full"):
                write_run_output(session, "MockTextGenerator")

        assert calls == [ROADMAP_FILE, PROMPT_PACK_FILE]
        assert not session.output_dir.exists()
        assert list(session.output_dir.parent.iterdir()) == []

    def test_replaces_empty_output_dir(self, session):
        session.output_dir.mkdir(parents=True)
        write_run_output(session, "MockTextGenerator")
        assert (session.output_dir / ROADMAP_FILE).is_file()


def test_metadata_duration(session):
    finished = session.created_at + timedelta(seconds=2, milliseconds=500)
    meta = build_run_metadata(session, "engine", finished_at=finished)
    assert meta.duration_ms == 2500
    assert meta.to_dict()["durationMs"] == 2500
    assert "error" not in meta.to_dict()
