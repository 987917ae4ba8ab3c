"""Tests for RunConfig."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.execution.config import RunConfig


def test_defaults():
    config = RunConfig()
    assert config.output_root == Path("out")
    assert config.stage1_root == Path("out/pipe-1")
    assert config.stage2_root == Path("out/pipe-2")
    assert config.stage3_root == Path("out/pipe-3")
    assert config.model == "sonnet"
    assert config.fail_on_empty_plan is False


def test_retry_policy_from_config():
    policy = RunConfig(max_attempts=5, retry_base_delay_seconds=0.5).retry_policy()
    assert policy.max_attempts == 5
    assert policy.base_delay_seconds == 0.5


def test_string_output_root_becomes_path():
    assert RunConfig(output_root="data").stage3_root == Path("data/pipe-3")


class TestFromYaml:
    def test_overrides(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text("output_root: /srv/pipeline\nmodel: opus\nmax_attempts: 2\nfail_on_empty_plan: true\n")
        config = RunConfig.from_yaml(path)
        assert config.output_root == Path("/srv/pipeline")
        assert config.model == "opus"
        assert config.max_attempts == 2
        assert config.fail_on_empty_plan is True
        assert config.stage2_dirname == "pipe-2"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text("")
        assert RunConfig.from_yaml(path) == RunConfig()

    def test_unknown_keys_rejected(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text("model: opus\nretries: 9\n")
        with pytest.raises(ValueError, match="retries"):
            RunConfig.from_yaml(path)

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            RunConfig.from_yaml(path)


class TestFromEnv:
    def test_applies_variables(self):
        env = {"PLANNER_OUTPUT_ROOT": "/tmp/runs", "PLANNER_MODEL": "haiku"}
        config = RunConfig.from_env(environ=env)
        assert config.output_root == Path("/tmp/runs")
        assert config.model == "haiku"

    def test_keeps_base_without_variables(self):
        base = RunConfig(model="opus")
        assert RunConfig.from_env(base, environ={}) is base
