"""Resource parser that walks a search directory once per format and aggregates the results."""

import logging
from pathlib import Path
from typing import Iterable, List, MutableSet, Optional, Sequence, Union

from resources.model import ScanResult, SourceFile
from .admission import AdmissionFilter
from .context import ExecutionContext, FileParseError
from .discovery import walk
from .exclusions import ExclusionMatcher
from .formats import DEFAULT_HANDLERS, FormatHandler


logger = logging.getLogger(__name__)

DEFAULT_SIZE_THRESHOLD_MB = 10


class ResourceParser:
    """
    Finds resource files under a search directory and parses them.

    Each handler gets its own walk of the search directory, filtered by
    the shared admission checks plus the handler's ``accepts``. Results
    are concatenated in handler order.

    Exclusion globs are compiled when the parser is built, so a malformed
    pattern raises ``GlobPatternError`` before anything is scanned.
    """

    def __init__(
        self,
        exclusions: Iterable[str] = (),
        size_threshold_mb: int = DEFAULT_SIZE_THRESHOLD_MB,
        handlers: Sequence[FormatHandler] = DEFAULT_HANDLERS,
        log: Optional[logging.Logger] = None,
    ):
        if size_threshold_mb < 0:
            raise ValueError(f"size_threshold_mb must not be negative, got {size_threshold_mb}")
        self.exclusions = ExclusionMatcher(Path("."), exclusions)
        self.size_threshold_mb = size_threshold_mb
        self.handlers = list(handlers)
        self.log = log or logger

    def parse(
        self,
        base_dir: Union[str, Path],
        search_dir: Union[str, Path],
        already_parsed: MutableSet[Path],
    ) -> List[SourceFile]:
        """
        Parse every admitted resource under ``search_dir``.

        ``already_parsed`` holds paths relative to ``search_dir``. Matching
        files are skipped, and files rejected for their size are added to
        it, so repeated calls with the same set do not revisit them.

        Args:
            base_dir: Project root; exclusions and source paths are relative to it.
            search_dir: Directory to scan.
            already_parsed: Caller-owned set, read and updated in place.

        Returns:
            Parsed sources in handler order. Empty if ``search_dir`` does not exist.

        Raises:
            TraversalError: If a directory cannot be listed.
        """
        return self._run(Path(base_dir), Path(search_dir), already_parsed).sources

    def scan(
        self,
        base_dir: Union[str, Path],
        search_dir: Union[str, Path],
        already_parsed: Iterable[Path] = (),
    ) -> ScanResult:
        """
        Like ``parse``, without mutating ``already_parsed``.

        The returned ``ScanResult.skipped`` holds only the paths found
        oversized by this call; merge it into your own set to carry it
        over to the next scan.
        """
        return self._run(Path(base_dir), Path(search_dir), set(already_parsed))

    def parse_source_files(
        self,
        base_dir: Union[str, Path],
        handler: FormatHandler,
        search_dir: Union[str, Path],
        already_parsed: MutableSet[Path],
        ctx: ExecutionContext,
    ) -> List[SourceFile]:
        """Walk ``search_dir`` for the files ``handler`` accepts and parse them."""
        admission = self._admission(Path(base_dir), Path(search_dir), already_parsed)
        return self._parse_with(handler, admission, ctx)

    def _run(self, base_dir: Path, search_dir: Path, already_parsed: MutableSet[Path]) -> ScanResult:
        result = ScanResult()
        if not search_dir.exists():
            self.log.debug("Search directory %s does not exist, nothing to parse", search_dir)
            return result

        self.log.debug(
            "Scanning %s (base %s) for %s",
            search_dir, base_dir, ", ".join(handler.name for handler in self.handlers),
        )
        ctx = ExecutionContext(self._report_error)
        admission = self._admission(base_dir, search_dir, already_parsed)

        for handler in self.handlers:
            result.sources.extend(self._parse_with(handler, admission, ctx))

        result.skipped = set(admission.oversized)
        result.errors = ctx.errors
        return result

    def _admission(self, base_dir: Path, search_dir: Path, already_parsed: MutableSet[Path]) -> AdmissionFilter:
        return AdmissionFilter(
            base_dir=base_dir,
            search_dir=search_dir,
            exclusions=self.exclusions.with_base(base_dir),
            already_parsed=already_parsed,
            size_threshold_mb=self.size_threshold_mb,
            log=self.log,
        )

    def _parse_with(
        self,
        handler: FormatHandler,
        admission: AdmissionFilter,
        ctx: ExecutionContext,
    ) -> List[SourceFile]:
        paths = walk(admission.search_dir, admission.for_handler(handler), log=self.log)
        if not paths:
            return []
        self.log.debug("Parsing %d %s file(s)", len(paths), handler.name)
        return handler.parse(paths, admission.base_dir, ctx)

    def _report_error(self, error: FileParseError) -> None:
        self.log.error("Error parsing %s", error.path, exc_info=error.cause)


def parse_resources(
    base_dir: Union[str, Path],
    search_dir: Optional[Union[str, Path]] = None,
    exclusions: Iterable[str] = (),
    size_threshold_mb: int = DEFAULT_SIZE_THRESHOLD_MB,
    already_parsed: Optional[MutableSet[Path]] = None,
    handlers: Sequence[FormatHandler] = DEFAULT_HANDLERS,
) -> List[SourceFile]:
    """
    Parse the resources under a directory.

    Args:
        base_dir: Project root.
        search_dir: Directory to scan (default: ``base_dir``).
        exclusions: Glob patterns relative to ``base_dir``.
        size_threshold_mb: Files larger than this are skipped; 0 disables.
        already_parsed: Paths relative to ``search_dir`` to skip; updated in place.
        handlers: Format handlers, in result order.

    Returns:
        Parsed sources.
    """
    parser = ResourceParser(exclusions, size_threshold_mb, handlers)
    if already_parsed is None:
        already_parsed = set()
    return parser.parse(base_dir, search_dir if search_dir is not None else base_dir, already_parsed)
