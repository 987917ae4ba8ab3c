"""Load stage-one and stage-two outputs into typed summaries.

Stage-one files read (relative to its run directory):
  indexes/files.jsonl                  - one {"file": path} object per line
  project-dna/conventions.json         - naming / formatting conventions
  project-dna/rules.json               - architectural rules
  project-dna/tokens.json              - design tokens
  project-dna/manifest.json            - stack manifest
  project-dna/copilot-instructions.md  - free-text guidance
  project-dna/system-prompts.json      - named behavioural directives

Stage-two files read:
  impact_analysis.json                 - mandatory
  clarifying_questions.json
  clarifying_answers.json
  phase2_run.json                      - run metadata (PRD path)

Every stage-one file and every stage-two file except the impact analysis is
optional: a missing or malformed file becomes an empty value plus a warning.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import MissingArtifactError
from .models import (
    AreaConfidence,
    ClarifyingAnswer,
    ClarifyingQuestion,
    CodebaseSummary,
    ImpactArea,
    ImpactFile,
    ImpactSummary,
    PrdRef,
)

logger = logging.getLogger(__name__)

IMPACT_ANALYSIS_FILE = "impact_analysis.json"
STAGE2_RUN_FILE = "phase2_run.json"
MAX_TOKENS = 30

_AREA_BY_VALUE = {area.value: area for area in ImpactArea}
_NEW_FILE_RE = re.compile(r"suggested new file[:\s]+([^\s,]+)", re.IGNORECASE)


@dataclass
class CodebaseLoadResult:
    summary: CodebaseSummary
    warnings: list[str] = field(default_factory=list)


@dataclass
class ImpactLoadResult:
    summary: ImpactSummary
    prd_text: str | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class InputPair:
    """A stage-two run and the stage-one run it was computed against."""

    stage1_run_id: str
    stage1_dir: Path
    stage2_run_id: str
    stage2_dir: Path
    project_id: str | None = None
    scanned_at: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_MISSING = object()


def clamp_unit(value) -> float:
    """Clamp a score or confidence into [0, 1]; non-numbers become 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if math.isnan(value):
        return 0.0
    return float(min(1.0, max(0.0, value)))


def _read_json(path: Path):
    """Return parsed JSON, ``_MISSING`` if absent, or ``None`` if unparsable."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return _MISSING
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Malformed JSON in %s: %s", path, exc)
        return None


def _optional_json(path: Path, expected: type, warnings: list[str]):
    data = _read_json(path)
    if data is _MISSING:
        warnings.append(f"{path.name} not found at {path}")
        return None
    if data is None:
        warnings.append(f"{path.name} is not valid JSON at {path}")
        return None
    if not isinstance(data, expected):
        warnings.append(
            f"{path.name} has unexpected shape at {path} "
            f"(got {type(data).__name__})"
        )
        return None
    return data


def _read_json_lines(path: Path, warnings: list[str]) -> list:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return []

    entries = []
    skipped = 0
    for line in raw.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(json.loads(line))
        except json.JSONDecodeError:
            skipped += 1
    if skipped:
        warnings.append(f"Skipped {skipped} malformed line(s) in {path}")
    return entries


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


# ---------------------------------------------------------------------------
# Stage one
# ---------------------------------------------------------------------------

def _flatten_tokens(raw: dict) -> dict:
    """Flatten ``{"tokens": [{"name", "value"}]}`` into a name -> value map."""
    token_list = raw.get("tokens")
    if not isinstance(token_list, list):
        return dict(raw)
    tokens = {}
    for token in token_list[:MAX_TOKENS]:
        if isinstance(token, dict) and token.get("name") and token.get("value"):
            tokens[token["name"]] = token["value"]
    return tokens


def load_codebase_summary(stage1_dir: Path) -> CodebaseLoadResult:
    """Read the stage-one output directory. Never raises for missing files."""
    warnings: list[str] = []
    stage1_dir = Path(stage1_dir)
    indexes_dir = stage1_dir / "indexes"
    dna_dir = stage1_dir / "project-dna"

    files_jsonl = indexes_dir / "files.jsonl"
    all_files = []
    for entry in _read_json_lines(files_jsonl, warnings):
        if isinstance(entry, dict) and isinstance(entry.get("file"), str):
            all_files.append(entry["file"])
        elif isinstance(entry, str):
            all_files.append(entry)
    if not all_files:
        warnings.append(
            f"Could not read file list from {files_jsonl} - "
            "file path grounding will be skipped"
        )
    else:
        logger.debug("Loaded %d file paths from %s", len(all_files), files_jsonl)

    conventions = _optional_json(dna_dir / "conventions.json", dict, warnings) or {}

    rules_raw = _optional_json(dna_dir / "rules.json", (dict, list), warnings)
    if isinstance(rules_raw, list):
        rules = {"rules": _string_list(rules_raw)}
    else:
        rules = rules_raw or {}

    tokens_raw = _optional_json(dna_dir / "tokens.json", dict, warnings)
    tokens = _flatten_tokens(tokens_raw) if tokens_raw else {}

    manifest = _optional_json(dna_dir / "manifest.json", dict, warnings)

    guidance_path = dna_dir / "copilot-instructions.md"
    try:
        guidance = guidance_path.read_text(encoding="utf-8")
    except OSError:
        guidance = ""
        warnings.append(f"{guidance_path.name} not found at {guidance_path}")

    directives = _optional_json(dna_dir / "system-prompts.json", dict, warnings) or {}

    summary = CodebaseSummary(
        all_files=all_files,
        conventions=conventions,
        rules=rules,
        tokens=tokens,
        manifest=manifest,
        guidance=guidance,
        directives=directives,
    )
    return CodebaseLoadResult(summary=summary, warnings=warnings)


# ---------------------------------------------------------------------------
# Stage two
# ---------------------------------------------------------------------------

def _impact_files(raw_files, warnings: list[str]) -> list[ImpactFile]:
    if not isinstance(raw_files, list):
        return []
    files = []
    for raw in raw_files:
        if not isinstance(raw, dict) or not isinstance(raw.get("path"), str):
            warnings.append(f"Skipped impacted file entry without a path: {raw!r}")
            continue
        role = raw.get("role")
        files.append(
            ImpactFile(
                path=raw["path"],
                score=clamp_unit(raw.get("score", 0)),
                role="primary" if role == "primary" else "secondary",
                reasons=_string_list(raw.get("reasons")),
                evidence=raw.get("evidence") if isinstance(raw.get("evidence"), dict) else None,
            )
        )
    return files


def _area_confidences(raw_areas) -> list[AreaConfidence]:
    if not isinstance(raw_areas, list):
        return []
    areas = []
    for raw in raw_areas:
        if not isinstance(raw, dict) or raw.get("area") not in _AREA_BY_VALUE:
            continue
        areas.append(
            AreaConfidence(
                area=_AREA_BY_VALUE[raw["area"]],
                confidence=clamp_unit(raw.get("confidence", 0)),
                rationale=_string_list(raw.get("rationale")),
            )
        )
    return areas


def _questions(raw) -> list[ClarifyingQuestion]:
    questions = []
    for q in raw or []:
        if not isinstance(q, dict) or "id" not in q:
            continue
        questions.append(
            ClarifyingQuestion(
                id=str(q["id"]),
                question_text=str(q.get("questionText", "")),
                type=str(q.get("type", "text")),
                required=bool(q.get("required", False)),
                options=_string_list(q.get("options")),
                rationale=q.get("rationale") if isinstance(q.get("rationale"), str) else None,
            )
        )
    return questions


def _answers(raw) -> list[ClarifyingAnswer]:
    answers = []
    for a in raw or []:
        if not isinstance(a, dict) or "questionId" not in a:
            continue
        value = a.get("value", "")
        if not isinstance(value, list):
            value = str(value)
        answers.append(ClarifyingAnswer(question_id=str(a["questionId"]), value=value))
    return answers


def _read_prd_text(stage2_dir: Path, warnings: list[str]) -> str | None:
    run_meta = _optional_json(stage2_dir / STAGE2_RUN_FILE, dict, warnings)
    if not run_meta or not isinstance(run_meta.get("prdPath"), str):
        return None

    prd_path = Path(run_meta["prdPath"])
    if not prd_path.is_absolute() and not prd_path.exists():
        prd_path = stage2_dir / prd_path
    try:
        return prd_path.read_text(encoding="utf-8")
    except OSError:
        warnings.append(f"PRD text not readable at {prd_path}")
        return None


def suggested_new_files(notes: list[str]) -> list[str]:
    found = []
    for note in notes:
        match = _NEW_FILE_RE.search(note)
        if match:
            found.append(match.group(1))
    return found


def load_impact_summary(stage2_dir: Path) -> ImpactLoadResult:
    """Read the stage-two output directory.

    Raises MissingArtifactError when the impact analysis is absent or cannot
    be parsed; every other file is optional.
    """
    warnings: list[str] = []
    stage2_dir = Path(stage2_dir)
    impact_path = stage2_dir / IMPACT_ANALYSIS_FILE

    raw = _read_json(impact_path)
    if raw is _MISSING:
        raise MissingArtifactError(impact_path)
    if not isinstance(raw, dict):
        raise MissingArtifactError(impact_path, detail="is not a valid JSON object")

    prd_raw = raw.get("prd") if isinstance(raw.get("prd"), dict) else {}
    prd = PrdRef(
        hash=str(prd_raw.get("hash", "")),
        source=prd_raw.get("source") if isinstance(prd_raw.get("source"), str) else None,
    )
    summary_raw = raw.get("summary") if isinstance(raw.get("summary"), dict) else {}
    notes = _string_list(raw.get("notes"))

    questions = _optional_json(stage2_dir / "clarifying_questions.json", list, warnings)
    answers = _optional_json(stage2_dir / "clarifying_answers.json", list, warnings)

    summary = ImpactSummary(
        prd=prd,
        files=_impact_files(raw.get("files"), warnings),
        areas=_area_confidences(summary_raw.get("areas")),
        questions=_questions(questions),
        answers=_answers(answers),
        new_files_suggested=suggested_new_files(notes),
        notes=notes,
    )
    prd_text = _read_prd_text(stage2_dir, warnings)
    return ImpactLoadResult(summary=summary, prd_text=prd_text, warnings=warnings)


# ---------------------------------------------------------------------------
# Input discovery
# ---------------------------------------------------------------------------

def list_available_inputs(stage1_root: Path, stage2_root: Path) -> list[InputPair]:
    """Pair every stage-two run that has an impact analysis with its stage-one run."""
    stage1_root = Path(stage1_root)
    stage2_root = Path(stage2_root)
    if not stage2_root.is_dir():
        return []

    pairs = []
    for stage2_dir in sorted(p for p in stage2_root.iterdir() if p.is_dir()):
        if not (stage2_dir / IMPACT_ANALYSIS_FILE).exists():
            continue

        run_meta = _read_json(stage2_dir / STAGE2_RUN_FILE)
        stage1_dir: Path | None = None
        if isinstance(run_meta, dict) and isinstance(run_meta.get("phase1OutDir"), str):
            stage1_dir = Path(run_meta["phase1OutDir"])
        elif stage1_root.is_dir():
            candidates = sorted(p for p in stage1_root.iterdir() if p.is_dir())
            if candidates:
                stage1_dir = candidates[0]
        if stage1_dir is None:
            continue

        manifest = _read_json(stage1_dir / "project-dna" / "manifest.json")
        if not isinstance(manifest, dict):
            manifest = {}
        pairs.append(
            InputPair(
                stage1_run_id=stage1_dir.name,
                stage1_dir=stage1_dir,
                stage2_run_id=stage2_dir.name,
                stage2_dir=stage2_dir,
                project_id=manifest.get("projectId"),
                scanned_at=manifest.get("scannedAt"),
            )
        )
    return pairs
