"""Depth-bounded discovery of resource files beneath a search directory."""

import logging
import stat
from pathlib import Path
from typing import Callable, Collection, Iterator, List, Optional, Union

from resources.model import ResourcePath


logger = logging.getLogger(__name__)

MAX_DEPTH = 16

# Build and tool output directories; never scanned, not configurable
BUILD_OUTPUT_DIRS = frozenset({
    "target", "build", "out", "node_modules", ".metadata",
})


class TraversalError(Exception):
    """Raised when a directory cannot be listed during a scan."""

    def __init__(self, path: Path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to scan {path}: {cause}")


def iter_resources(
    root: Path,
    exclude_dirs: Collection[str] = BUILD_OUTPUT_DIRS,
    max_depth: int = MAX_DEPTH,
) -> Iterator[ResourcePath]:
    """
    Iterate over the entries of a directory tree.

    Both files and directories are yielded. Direct children of ``root``
    are at depth 1; nothing deeper than ``max_depth`` is yielded.

    Args:
        root: Directory to scan.
        exclude_dirs: Directory names that are yielded but not descended.
        max_depth: Maximum depth of a yielded entry.

    Yields:
        ResourcePath for every entry within the depth bound.

    Raises:
        TraversalError: If a directory cannot be listed or an entry's
                        attributes cannot be read.
    """

    def _walk(current: Path, depth: int) -> Iterator[ResourcePath]:
        try:
            entries = sorted(current.iterdir())
        except OSError as e:
            raise TraversalError(current, e) from e

        for entry in entries:
            # Links are reported as themselves and never followed
            try:
                info = entry.lstat()
            except OSError as e:
                raise TraversalError(entry, e) from e

            is_dir = stat.S_ISDIR(info.st_mode)
            yield ResourcePath(entry, size=0 if is_dir else info.st_size, is_dir=is_dir)

            if is_dir and depth < max_depth:
                if entry.name in exclude_dirs:
                    continue
                yield from _walk(entry, depth + 1)

    yield from _walk(root, 1)


def walk(
    search_dir: Union[str, Path],
    predicate: Callable[[ResourcePath], bool],
    exclude_dirs: Collection[str] = BUILD_OUTPUT_DIRS,
    max_depth: int = MAX_DEPTH,
    log: Optional[logging.Logger] = None,
) -> List[Path]:
    """
    Collect the paths under ``search_dir`` accepted by ``predicate``.

    A missing ``search_dir`` is not an error and yields no paths. A listing
    failure aborts the whole walk: it is logged and re-raised, and no
    partial result is returned.

    Args:
        search_dir: Root of the scan.
        predicate: Admission check applied to every entry.
        exclude_dirs: Directory names that are not descended.
        max_depth: Maximum depth of a returned path.
        log: Logger for failures; defaults to this module's logger.

    Returns:
        Accepted paths.
    """
    log = log or logger
    search_dir = Path(search_dir)
    if not search_dir.exists():
        log.debug("Search directory %s does not exist, nothing to scan", search_dir)
        return []

    try:
        return [
            resource.path
            for resource in iter_resources(search_dir, exclude_dirs, max_depth)
            if predicate(resource)
        ]
    except TraversalError as e:
        log.error("Failed to scan %s: %s", e.path, e.cause, exc_info=e)
        raise


def get_relative_path(file_path: Path, root: Path) -> Path:
    """Get the path relative to root, handling edge cases."""
    try:
        return file_path.relative_to(root)
    except ValueError:
        try:
            return file_path.resolve().relative_to(root.resolve())
        except ValueError:
            return file_path
