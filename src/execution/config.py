"""Pipeline run configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

import yaml

from src.generation.retry import RetryPolicy


@dataclass
class RunConfig:
    """Configuration for pipeline runs.

    Stage output directories are laid out as ``<output_root>/<stage_dirname>/<run_id>``.
    """

    output_root: Path = field(default_factory=lambda: Path("out"))
    stage1_dirname: str = "pipe-1"
    stage2_dirname: str = "pipe-2"
    stage3_dirname: str = "pipe-3"
    model: str = "sonnet"
    max_attempts: int = 3
    retry_base_delay_seconds: float = 3.0
    generation_timeout_seconds: int = 600
    fail_on_empty_plan: bool = False

    def __post_init__(self) -> None:
        self.output_root = Path(self.output_root)

    @property
    def stage1_root(self) -> Path:
        return self.output_root / self.stage1_dirname

    @property
    def stage2_root(self) -> Path:
        return self.output_root / self.stage2_dirname

    @property
    def stage3_root(self) -> Path:
        return self.output_root / self.stage3_dirname

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay_seconds=self.retry_base_delay_seconds,
        )

    @classmethod
    def from_yaml(cls, path: Path) -> RunConfig:
        """Load overrides from a YAML mapping. Unknown keys are rejected."""
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_env(
        cls, base: RunConfig | None = None, environ: dict | None = None,
    ) -> RunConfig:
        """Apply ``PLANNER_OUTPUT_ROOT`` and ``PLANNER_MODEL`` on top of ``base``."""
        config = base or cls()
        env = os.environ if environ is None else environ
        overrides = {}
        if env.get("PLANNER_OUTPUT_ROOT"):
            overrides["output_root"] = Path(env["PLANNER_OUTPUT_ROOT"])
        if env.get("PLANNER_MODEL"):
            overrides["model"] = env["PLANNER_MODEL"]
        return replace(config, **overrides) if overrides else config
