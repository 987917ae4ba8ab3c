from .models import RunSession, RunStatus, RunTransition
from .interface import RunStore

__all__ = [
    "RunSession",
    "RunStatus",
    "RunTransition",
    "RunStore",
]
