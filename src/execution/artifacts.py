"""Run output files: roadmap, agent prompt pack and run metadata."""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from src.planning.models import AgentPromptPack, Roadmap
from src.workflow.models import RunSession

logger = logging.getLogger(__name__)

ROADMAP_FILE = "roadmap.json"
PROMPT_PACK_FILE = "agent_prompt_pack.json"
RUN_META_FILE = "phase3_run.json"


@dataclass
class RunMetadata:
    run_id: str
    stage1_dir: str
    stage2_dir: str
    output_dir: str
    started_at: str
    finished_at: str
    duration_ms: int
    status: str
    engine_name: str
    error: str | None = None

    def to_dict(self) -> dict:
        data = {
            "runId": self.run_id,
            "phase1OutDir": self.stage1_dir,
            "phase2OutDir": self.stage2_dir,
            "outDir": self.output_dir,
            "startedAt": self.started_at,
            "finishedAt": self.finished_at,
            "durationMs": self.duration_ms,
            "status": self.status,
            "engineName": self.engine_name,
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict) -> RunMetadata:
        return cls(
            run_id=data["runId"],
            stage1_dir=data["phase1OutDir"],
            stage2_dir=data["phase2OutDir"],
            output_dir=data["outDir"],
            started_at=data["startedAt"],
            finished_at=data["finishedAt"],
            duration_ms=data["durationMs"],
            status=data["status"],
            engine_name=data["engineName"],
            error=data.get("error"),
        )


def _write_json(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.debug("Wrote %s", path)
    return path


def build_run_metadata(
    session: RunSession,
    engine_name: str,
    finished_at: datetime | None = None,
) -> RunMetadata:
    finished = finished_at or datetime.now()
    return RunMetadata(
        run_id=session.run_id,
        stage1_dir=str(session.stage1_dir),
        stage2_dir=str(session.stage2_dir),
        output_dir=str(session.output_dir),
        started_at=session.created_at.isoformat(),
        finished_at=finished.isoformat(),
        duration_ms=int((finished - session.created_at).total_seconds() * 1000),
        status="error" if session.error else "success",
        engine_name=engine_name,
        error=session.error,
    )


def write_run_output(session: RunSession, engine_name: str) -> list[Path]:
    """Write the session's roadmap, prompt pack and metadata to its output dir.

    The files go to a staging directory beside the output dir, which is
    renamed into place once all of them are written. A failed write leaves
    no output directory behind.
    """
    if session.roadmap is None or session.prompt_pack is None:
        raise ValueError(f"Run {session.run_id} has no roadmap or prompt pack to write")

    documents = {
        ROADMAP_FILE: session.roadmap.to_dict(),
        PROMPT_PACK_FILE: session.prompt_pack.to_dict(),
        RUN_META_FILE: build_run_metadata(session, engine_name).to_dict(),
    }
    out_dir = Path(session.output_dir)
    staging = out_dir.with_name(f".{out_dir.name}.partial")
    shutil.rmtree(staging, ignore_errors=True)
    staging.mkdir(parents=True)
    try:
        for name, data in documents.items():
            _write_json(staging / name, data)
        staging.replace(out_dir)
    except Exception:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    logger.info("Wrote run output to %s", out_dir)
    return [out_dir / name for name in documents]


def read_roadmap(path: Path) -> Roadmap:
    return Roadmap.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))


def read_prompt_pack(path: Path) -> AgentPromptPack:
    return AgentPromptPack.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))


def read_run_metadata(path: Path) -> RunMetadata:
    return RunMetadata.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))
