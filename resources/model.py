"""Data model for discovered resources and parsed sources."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Set


@dataclass(frozen=True)
class ResourcePath:
    """
    A filesystem entry seen during traversal, with the attributes
    the admission checks need.
    """

    path: Path
    size: int = 0
    is_dir: bool = False


@dataclass
class SourceFile:
    """
    A parsed resource.

    ``path`` is relative to the base directory the scan was run against.
    ``data`` is whatever the format's loader produced and is never
    inspected by the scanner.
    """

    path: Path
    format: str
    data: Any = None

    def __repr__(self) -> str:
        return f"SourceFile(path={self.path.as_posix()!r}, format={self.format!r})"


@dataclass
class ScanResult:
    """
    Outcome of one scan.

    Attributes:
        sources: Parsed sources, in handler order.
        skipped: Paths (relative to the search directory) newly recorded
                 as oversized during this scan.
        errors: Per-file failures reported by the format handlers.
    """

    sources: List[SourceFile] = field(default_factory=list)
    skipped: Set[Path] = field(default_factory=set)
    errors: List[Any] = field(default_factory=list)
