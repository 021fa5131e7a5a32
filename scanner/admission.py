"""
Admission checks deciding which discovered files are handed to a parser.

The checks run cheapest and most decisive first:

1. build-output directories (``target``, ``build``, ...), always rejected;
2. exclusion globs, relative to the base directory;
3. paths already parsed, relative to the search directory;
4. directories and empty files;
5. files over the size threshold, which are also recorded as parsed;
6. the format handler's own ``accepts`` check.
"""

import logging
from pathlib import Path
from typing import Callable, MutableSet, Optional, Set, Union

from resources.model import ResourcePath
from .discovery import BUILD_OUTPUT_DIRS
from .exclusions import ExclusionMatcher


logger = logging.getLogger(__name__)

MIB = 1024 * 1024


def is_build_output(path: Path) -> bool:
    """Check if any segment of ``path`` is a build-output directory name."""
    return any(part in BUILD_OUTPUT_DIRS for part in path.parts)


class AdmissionFilter:
    """
    Composed admission predicate for one scan.

    ``already_parsed`` is owned by the caller and shared across scans. It
    is read to skip known paths and written when a file is rejected for
    its size. It is not synchronized: concurrent scans over overlapping
    trees need external locking.

    Exclusions and the already-parsed lookup use different bases. Globs
    are matched against the path relative to ``base_dir``; the
    already-parsed set holds paths relative to ``search_dir``.
    """

    def __init__(
        self,
        base_dir: Union[str, Path],
        search_dir: Union[str, Path],
        exclusions: Optional[ExclusionMatcher] = None,
        already_parsed: Optional[MutableSet[Path]] = None,
        size_threshold_mb: int = 0,
        log: Optional[logging.Logger] = None,
    ):
        self.base_dir = Path(base_dir)
        self.search_dir = Path(search_dir)
        self.exclusions = exclusions if exclusions is not None else ExclusionMatcher(self.base_dir)
        self.already_parsed = already_parsed if already_parsed is not None else set()
        self.size_threshold_mb = size_threshold_mb
        self.log = log or logger
        # Paths this filter rejected for size
        self.oversized: Set[Path] = set()

    @property
    def size_threshold_bytes(self) -> int:
        return self.size_threshold_mb * MIB

    def admits(self, resource: ResourcePath) -> bool:
        """Apply every check except the format handler's."""
        path = resource.path

        if is_build_output(path):
            return False

        if self.exclusions.matches(path):
            return False

        relative = path.relative_to(self.search_dir)
        if relative in self.already_parsed or relative in self.oversized:
            return False

        if resource.is_dir or resource.size == 0:
            return False

        if self.size_threshold_mb > 0 and resource.size > self.size_threshold_bytes:
            self.already_parsed.add(relative)
            self.oversized.add(relative)
            self.log.info(
                "Skipping parsing %s as its size %dMb exceeds size threshold %dMb",
                path, resource.size // MIB, self.size_threshold_mb,
            )
            return False

        return True

    def for_handler(self, handler) -> Callable[[ResourcePath], bool]:
        """Return the predicate specialized with ``handler.accepts``."""

        def predicate(resource: ResourcePath) -> bool:
            return self.admits(resource) and handler.accepts(resource.path)

        return predicate

    def __call__(self, resource: ResourcePath) -> bool:
        return self.admits(resource)
