"""Dependency integrity and ordering for plan steps."""

from __future__ import annotations

import heapq
import logging
from dataclasses import replace

from .models import PlanStep

logger = logging.getLogger(__name__)


def find_dangling_dependencies(steps: list[PlanStep]) -> dict[str, list[str]]:
    """Map step id -> dependency ids that are not steps of the same plan.

    Self references count as dangling. Empty dict means every reference resolves.
    """
    known = {step.id for step in steps}
    dangling: dict[str, list[str]] = {}
    for step in steps:
        bad = [d for d in step.depends_on_step_ids if d not in known or d == step.id]
        if bad:
            dangling[step.id] = bad
    return dangling


def prune_dangling_dependencies(steps: list[PlanStep]) -> list[PlanStep]:
    """Return copies of the steps with unresolvable and repeated dependencies removed."""
    dangling = find_dangling_dependencies(steps)
    pruned = []
    for step in steps:
        bad = set(dangling.get(step.id, []))
        for dep in sorted(bad):
            logger.info("Step %s: dropped dependency on unknown step %s", step.id, dep)
        kept = list(dict.fromkeys(d for d in step.depends_on_step_ids if d not in bad))
        if kept != step.depends_on_step_ids:
            step = replace(step, depends_on_step_ids=kept)
        pruned.append(step)
    return pruned


def order_steps(steps: list[PlanStep]) -> list[PlanStep]:
    """Topologically order steps so each follows the steps it depends on.

    Among steps that are ready at the same time the input order wins.
    Steps caught in a cycle keep their input order at the end.
    """
    if not steps:
        return []

    index_of = {step.id: i for i, step in enumerate(steps)}
    in_degree = [0] * len(steps)
    dependents: list[list[int]] = [[] for _ in steps]

    for i, step in enumerate(steps):
        for dep in dict.fromkeys(step.depends_on_step_ids):
            j = index_of.get(dep)
            if j is None or j == i:
                continue
            dependents[j].append(i)
            in_degree[i] += 1

    ready = [i for i, degree in enumerate(in_degree) if degree == 0]
    heapq.heapify(ready)
    ordered: list[int] = []
    while ready:
        i = heapq.heappop(ready)
        ordered.append(i)
        for k in dependents[i]:
            in_degree[k] -= 1
            if in_degree[k] == 0:
                heapq.heappush(ready, k)

    if len(ordered) < len(steps):
        placed = set(ordered)
        cyclic = [i for i in range(len(steps)) if i not in placed]
        logger.warning(
            "Dependency cycle among steps %s; keeping their generated order",
            ", ".join(steps[i].id for i in cyclic),
        )
        ordered.extend(cyclic)

    return [steps[i] for i in ordered]
