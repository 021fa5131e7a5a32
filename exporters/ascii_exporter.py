"""ASCII tree-style exporter for scan results."""

from pathlib import Path
from typing import Dict, List, Tuple

from resources.model import ScanResult


# Unicode tree characters
UNICODE_BRANCH = "├── "
UNICODE_LAST = "└── "

# ASCII fallback characters
ASCII_BRANCH = "|-- "
ASCII_LAST = "\\-- "


def to_ascii(
    result: ScanResult,
    style: str = "tree",
) -> str:
    """
    Convert a scan result to an ASCII tree, one tree per format.

    Skipped (oversized) files and parse errors follow the formats, each
    in their own tree.

    Args:
        result: The scan result to export.
        style: Output style - "tree" (Unicode) or "ascii" (pure ASCII).

    Returns:
        ASCII tree string.
    """
    if style == "ascii":
        chars = (ASCII_BRANCH, ASCII_LAST)
    else:
        chars = (UNICODE_BRANCH, UNICODE_LAST)

    # Group by format, keeping handler order
    groups: Dict[str, List[str]] = {}
    for source in result.sources:
        groups.setdefault(source.format, []).append(_path_str(source.path))

    sections: List[Tuple[str, List[str]]] = list(groups.items())

    if result.skipped:
        skipped = []
        for path in sorted(result.skipped):
            skipped.append(f"{_path_str(path)} [SIZE]")
        sections.append(("skipped", skipped))

    if result.errors:
        errors = [
            f"{_path_str(error.path)} [ERROR] {_first_line(str(error.cause))}"
            for error in result.errors
        ]
        sections.append(("errors", errors))

    blocks = [_render_section(title, items, chars) for title, items in sections]
    return "\n\n".join(blocks)


def _render_section(title: str, items: List[str], chars: Tuple[str, str]) -> str:
    branch, last = chars
    lines = [f"{title} ({len(items)})"]
    for i, item in enumerate(items):
        connector = last if i == len(items) - 1 else branch
        lines.append(f"{connector}{item}")
    return "\n".join(lines)


def _first_line(text: str) -> str:
    return text.strip().splitlines()[0] if text.strip() else ""


def _path_str(path: Path) -> str:
    return str(path).replace("\\", "/")
