"""JSON exporter for scan results (machine-friendly format)."""

import json
from pathlib import Path
from typing import Any, Dict, List

from resources.model import ScanResult


def to_json(
    result: ScanResult,
    indent: int = 2,
) -> str:
    """
    Convert a scan result to JSON format.

    Args:
        result: The scan result to export.
        indent: JSON indentation level.

    Returns:
        JSON string with ``sources``, ``skipped`` and ``errors`` lists.
    """
    sources: List[Dict[str, Any]] = [
        {"path": _path_str(source.path), "format": source.format}
        for source in result.sources
    ]

    skipped: List[str] = []
    for path in sorted(result.skipped):
        skipped.append(_path_str(path))

    errors: List[Dict[str, str]] = [
        {"path": _path_str(error.path), "error": str(error.cause)}
        for error in result.errors
    ]

    data: Dict[str, Any] = {
        "sources": sources,
        "skipped": skipped,
        "errors": errors,
    }

    return json.dumps(data, indent=indent)


def _path_str(path: Path) -> str:
    return str(path).replace("\\", "/")
