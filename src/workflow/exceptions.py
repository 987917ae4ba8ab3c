"""Workflow exception types."""


class InvalidTransitionError(Exception):
    """Raised when an invalid run state transition is attempted."""

    def __init__(self, run_id: str, from_status, to_status):
        self.run_id = run_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition for run {run_id}: "
            f"{from_status.value} → {to_status.value}"
        )


class RunNotFoundError(KeyError):
    """Raised when a run id is not registered in the store."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Run not found: {run_id}")

    def __str__(self) -> str:
        return self.args[0]


class RunNotReadyError(Exception):
    """Raised when results are requested before a run has completed."""

    def __init__(self, run_id: str, status):
        self.run_id = run_id
        self.status = status
        super().__init__(f"Run {run_id} is not complete (status: {status.value})")


class PromptNotFoundError(KeyError):
    """Raised when a completed run has no prompt for the requested step."""

    def __init__(self, run_id: str, step_id: str):
        self.run_id = run_id
        self.step_id = step_id
        super().__init__(f"No prompt found for step {step_id} in run {run_id}")

    def __str__(self) -> str:
        return self.args[0]
