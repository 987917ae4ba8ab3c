"""In-memory run store. Sessions live until the process exits."""

import asyncio
import logging
from dataclasses import fields as dataclass_fields
from datetime import datetime

from ..workflow.exceptions import RunNotFoundError
from ..workflow.models import RunSession, RunStatus, RunTransition
from ..workflow.transitions import validate_transition

logger = logging.getLogger(__name__)

_SESSION_FIELDS = frozenset(f.name for f in dataclass_fields(RunSession))


class InMemoryRunStore:
    """RunStore backed by a dict guarded by a single asyncio lock."""

    def __init__(self) -> None:
        self._sessions: dict[str, RunSession] = {}
        self._lock = asyncio.Lock()

    async def create(self, session: RunSession) -> RunSession:
        async with self._lock:
            if session.run_id in self._sessions:
                raise ValueError(f"Run already exists: {session.run_id}")
            self._sessions[session.run_id] = session
        logger.debug("Registered run %s", session.run_id)
        return session

    async def get(self, run_id: str) -> RunSession:
        async with self._lock:
            return self._get(run_id)

    async def exists(self, run_id: str) -> bool:
        async with self._lock:
            return run_id in self._sessions

    async def list_sessions(self) -> list[RunSession]:
        async with self._lock:
            return list(self._sessions.values())

    async def update(self, run_id: str, **fields) -> RunSession:
        async with self._lock:
            session = self._get(run_id)
            for key, value in fields.items():
                if key not in _SESSION_FIELDS:
                    raise ValueError(f"Unknown session field: {key}")
                if key == "status":
                    raise ValueError("Use transition() to change run status")
                setattr(session, key, value)
            return session

    async def transition(
        self, run_id: str, to_status: RunStatus, reason: str | None = None,
    ) -> RunSession:
        async with self._lock:
            session = self._get(run_id)
            from_status = session.status
            validate_transition(run_id, from_status, to_status)

            now = datetime.now()
            session.status = to_status
            session.transitions.append(
                RunTransition(
                    from_status=from_status,
                    to_status=to_status,
                    timestamp=now,
                    reason=reason,
                )
            )
            if to_status is RunStatus.ERROR:
                session.error = reason
            if to_status.is_terminal:
                session.finished_at = now

        logger.info(
            "Run %s: %s -> %s", run_id, from_status.value, to_status.value,
        )
        return session

    def _get(self, run_id: str) -> RunSession:
        if run_id not in self._sessions:
            raise RunNotFoundError(run_id)
        return self._sessions[run_id]
