"""Tests for dependency pruning and step ordering."""

from __future__ import annotations

from src.planning.models import PlanStep
from src.planning.ordering import (
    find_dangling_dependencies,
    order_steps,
    prune_dangling_dependencies,
)


def _step(step_id: str, *deps: str) -> PlanStep:
    return PlanStep(id=step_id, title=step_id, description=step_id, depends_on_step_ids=list(deps))


def _ids(steps: list[PlanStep]) -> list[str]:
    return [s.id for s in steps]


class TestFindDangling:
    def test_all_resolved(self):
        assert find_dangling_dependencies([_step("a"), _step("b", "a")]) == {}

    def test_unknown_and_self_references(self):
        steps = [_step("a", "a"), _step("b", "a", "ghost")]
        assert find_dangling_dependencies(steps) == {"a": ["a"], "b": ["ghost"]}


class TestPrune:
    def test_removes_dangling_and_repeated(self):
        steps = [_step("a"), _step("b", "a", "ghost", "a", "b")]
        pruned = prune_dangling_dependencies(steps)
        assert pruned[1].depends_on_step_ids == ["a"]

    def test_does_not_mutate_input(self):
        original = _step("b", "ghost")
        prune_dangling_dependencies([original])
        assert original.depends_on_step_ids == ["ghost"]

    def test_untouched_steps_are_returned_as_is(self):
        step = _step("a")
        assert prune_dangling_dependencies([step])[0] is step


class TestOrderSteps:
    def test_empty(self):
        assert order_steps([]) == []

    def test_already_ordered_is_unchanged(self):
        steps = [_step("a"), _step("b", "a"), _step("c", "b")]
        assert _ids(order_steps(steps)) == ["a", "b", "c"]

    def test_dependency_moves_ahead(self):
        steps = [_step("ui", "types"), _step("types")]
        assert _ids(order_steps(steps)) == ["types", "ui"]

    def test_independent_steps_keep_generated_order(self):
        steps = [_step("c"), _step("a"), _step("b", "c")]
        assert _ids(order_steps(steps)) == ["c", "a", "b"]

    def test_diamond(self):
        steps = [_step("d", "b", "c"), _step("b", "a"), _step("c", "a"), _step("a")]
        assert _ids(order_steps(steps)) == ["a", "b", "c", "d"]

    def test_cycle_appended_in_generated_order(self):
        steps = [_step("x", "y"), _step("free"), _step("y", "x")]
        assert _ids(order_steps(steps)) == ["free", "x", "y"]

    def test_unknown_dependencies_are_ignored(self):
        steps = [_step("a", "ghost"), _step("b")]
        assert _ids(order_steps(steps)) == ["a", "b"]
