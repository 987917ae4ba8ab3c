"""Abstract run store protocol."""

from typing import Protocol

from .models import RunSession, RunStatus


class RunStore(Protocol):
    """Interface that any run session store must implement.

    The runner is the only writer for a given run; status readers may race
    with it, so implementations serialise access.
    """

    async def create(self, session: RunSession) -> RunSession: ...

    async def get(self, run_id: str) -> RunSession: ...

    async def exists(self, run_id: str) -> bool: ...

    async def list_sessions(self) -> list[RunSession]: ...

    async def update(self, run_id: str, **fields) -> RunSession: ...

    async def transition(
        self, run_id: str, to_status: RunStatus, reason: str | None = None,
    ) -> RunSession: ...
