"""Tests for the run state machine and InMemoryRunStore."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from src.adapters.memory import InMemoryRunStore
from src.workflow.exceptions import InvalidTransitionError, RunNotFoundError
from src.workflow.models import RunSession, RunStatus
from src.workflow.transitions import VALID_TRANSITIONS, validate_transition

HAPPY_PATH = [
    RunStatus.LOADING_INPUTS,
    RunStatus.GENERATING_SUBTASKS,
    RunStatus.GENERATING_PROMPTS,
    RunStatus.COMPLETE,
]


def _session(run_id: str = "run-1") -> RunSession:
    return RunSession(
        run_id=run_id,
        stage1_run_id="s1",
        stage1_dir=Path("out/pipe-1/s1"),
        stage2_run_id="s2",
        stage2_dir=Path("out/pipe-2/s2"),
        output_dir=Path("out/pipe-3") / run_id,
    )


@pytest.fixture
def store():
    return InMemoryRunStore()


class TestTransitions:
    def test_terminal_states(self):
        assert RunStatus.COMPLETE.is_terminal
        assert RunStatus.ERROR.is_terminal
        assert not RunStatus.GENERATING_PROMPTS.is_terminal

    def test_every_non_terminal_state_can_fail(self):
        for status in RunStatus:
            if not status.is_terminal:
                assert (status, RunStatus.ERROR) in VALID_TRANSITIONS

    def test_terminal_states_have_no_exits(self):
        assert not [t for t in VALID_TRANSITIONS if t[0].is_terminal]

    @pytest.mark.parametrize(
        "from_status, to_status",
        [
            (RunStatus.CREATED, RunStatus.GENERATING_SUBTASKS),
            (RunStatus.LOADING_INPUTS, RunStatus.COMPLETE),
            (RunStatus.GENERATING_PROMPTS, RunStatus.LOADING_INPUTS),
            (RunStatus.COMPLETE, RunStatus.ERROR),
            (RunStatus.ERROR, RunStatus.LOADING_INPUTS),
        ],
    )
    def test_invalid(self, from_status, to_status):
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_transition("run-1", from_status, to_status)
        assert exc_info.value.from_status is from_status
        assert "run-1" in str(exc_info.value)


class TestInMemoryRunStore:
    async def test_create_and_get(self, store):
        session = await store.create(_session())
        assert await store.get("run-1") is session
        assert await store.exists("run-1")
        assert session.status is RunStatus.CREATED

    async def test_duplicate_id_rejected(self, store):
        await store.create(_session())
        with pytest.raises(ValueError, match="already exists"):
            await store.create(_session())

    async def test_unknown_run(self, store):
        with pytest.raises(RunNotFoundError, match="Run not found: nope"):
            await store.get("nope")
        assert not await store.exists("nope")

    async def test_run_not_found_is_a_key_error(self, store):
        with pytest.raises(KeyError):
            await store.update("nope", prd_text="x")

    async def test_happy_path_records_history(self, store):
        await store.create(_session())
        for status in HAPPY_PATH:
            await store.transition("run-1", status)
        session = await store.get("run-1")
        assert session.status is RunStatus.COMPLETE
        assert [t.to_status for t in session.transitions] == HAPPY_PATH
        assert session.transitions[0].from_status is RunStatus.CREATED
        assert session.finished_at is not None
        assert session.error is None

    async def test_error_keeps_reason(self, store):
        await store.create(_session())
        await store.transition("run-1", RunStatus.LOADING_INPUTS)
        session = await store.transition("run-1", RunStatus.ERROR, reason="Pipeline failed: boom")
        assert session.error == "Pipeline failed: boom"
        assert session.transitions[-1].reason == "Pipeline failed: boom"
        assert session.finished_at is not None

    async def test_invalid_transition_leaves_state(self, store):
        await store.create(_session())
        with pytest.raises(InvalidTransitionError):
            await store.transition("run-1", RunStatus.COMPLETE)
        session = await store.get("run-1")
        assert session.status is RunStatus.CREATED
        assert session.transitions == []

    async def test_update_fields(self, store):
        await store.create(_session())
        session = await store.update("run-1", prd_text="PRD", output_written=True)
        assert session.prd_text == "PRD"
        assert session.output_written is True

    async def test_update_rejects_unknown_field(self, store):
        await store.create(_session())
        with pytest.raises(ValueError, match="Unknown session field"):
            await store.update("run-1", colour="blue")

    async def test_update_rejects_status(self, store):
        await store.create(_session())
        with pytest.raises(ValueError, match="transition"):
            await store.update("run-1", status=RunStatus.COMPLETE)

    async def test_list_sessions(self, store):
        await store.create(_session("a"))
        await store.create(_session("b"))
        assert sorted(s.run_id for s in await store.list_sessions()) == ["a", "b"]

    async def test_concurrent_runs_are_independent(self, store):
        await asyncio.gather(*(store.create(_session(f"run-{i}")) for i in range(5)))

        async def advance(run_id: str):
            for status in HAPPY_PATH:
                await store.transition(run_id, status)
                await asyncio.sleep(0)

        await asyncio.gather(*(advance(f"run-{i}") for i in range(5)))
        sessions = await store.list_sessions()
        assert all(s.status is RunStatus.COMPLETE for s in sessions)
        assert all(len(s.transitions) == 4 for s in sessions)
