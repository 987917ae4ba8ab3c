"""Generation exception types."""

# Rate limited, service unavailable, overloaded.
TRANSIENT_STATUSES = frozenset({429, 503, 529})


class GenerationError(Exception):
    """Raised when the text generator reports a failure.

    ``transient`` says whether the same request is likely to succeed if sent
    again. When not given it is derived from ``status``.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        transient: bool | None = None,
    ):
        self.status = status
        if transient is None:
            transient = status in TRANSIENT_STATUSES
        self.transient = transient
        super().__init__(message)
