"""Run state-machine transitions defined as data."""

from .exceptions import InvalidTransitionError
from .models import RunStatus

VALID_TRANSITIONS: frozenset[tuple[RunStatus, RunStatus]] = frozenset(
    {
        (RunStatus.CREATED, RunStatus.LOADING_INPUTS),               # start
        (RunStatus.LOADING_INPUTS, RunStatus.GENERATING_SUBTASKS),   # inputs loaded
        (RunStatus.GENERATING_SUBTASKS, RunStatus.GENERATING_PROMPTS),  # steps validated
        (RunStatus.GENERATING_PROMPTS, RunStatus.COMPLETE),          # output written
        (RunStatus.CREATED, RunStatus.ERROR),
        (RunStatus.LOADING_INPUTS, RunStatus.ERROR),
        (RunStatus.GENERATING_SUBTASKS, RunStatus.ERROR),
        (RunStatus.GENERATING_PROMPTS, RunStatus.ERROR),
    }
)


def validate_transition(
    run_id: str,
    from_status: RunStatus,
    to_status: RunStatus,
) -> None:
    """Raise InvalidTransitionError if the transition is not allowed."""
    if (from_status, to_status) not in VALID_TRANSITIONS:
        raise InvalidTransitionError(run_id, from_status, to_status)
