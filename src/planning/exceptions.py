"""Planning exception types."""

from pathlib import Path


class MissingArtifactError(FileNotFoundError):
    """Raised when a mandatory upstream artifact is absent or unreadable."""

    def __init__(self, path: Path, detail: str = "not found"):
        self.path = path
        self.detail = detail
        super().__init__(f"Impact analysis {detail} at: {path}")

    def __str__(self) -> str:
        return f"Impact analysis {self.detail} at: {self.path}"


class MalformedOutputError(ValueError):
    """Raised when generated text is not a JSON object with the expected array."""

    def __init__(self, key: str, detail: str):
        self.key = key
        self.detail = detail
        super().__init__(f"Generated output for '{key}' is malformed: {detail}")


class EmptyPlanError(ValueError):
    """Raised when validation leaves no plan steps and empty plans are not allowed."""

    def __init__(self, dropped: int):
        self.dropped = dropped
        super().__init__(f"No valid subtasks generated ({dropped} entries rejected)")
