class TrackerError(Exception):
    """Base exception for the intern tracker."""


class DirectoryUnavailable(TrackerError):
    """Raised when the directory store cannot be reached or signed in to."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class ToggleStateError(TrackerError):
    """Raised on an illegal phase transition of a toggle attempt."""
