"""Error accumulation shared by the format handlers of one scan."""

from pathlib import Path
from typing import Callable, List, Optional


class FileParseError(Exception):
    """A single resource that could not be read or parsed."""

    def __init__(self, path: Path, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"{path}: {cause}")


class ExecutionContext:
    """
    Collects per-file errors reported by format handlers.

    One context is created per top-level scan and threaded through every
    handler. Reporting never raises, so one bad file does not stop the
    rest of a batch.
    """

    def __init__(self, on_error: Optional[Callable[[FileParseError], None]] = None):
        self._errors: List[FileParseError] = []
        self._on_error = on_error

    def report(self, error: FileParseError) -> None:
        """Record an error and forward it to the error callback, if any."""
        self._errors.append(error)
        if self._on_error is not None:
            self._on_error(error)

    @property
    def errors(self) -> List[FileParseError]:
        return list(self._errors)
