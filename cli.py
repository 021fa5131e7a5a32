#!/usr/bin/env python3
"""
Resource Scanner CLI

Finds configuration and infrastructure resource files (JSON, XML, YAML,
Properties, HCL, TOML) under a project and parses them.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Set

from resources.model import ScanResult
from scanner.discovery import TraversalError, get_relative_path
from scanner.exclusions import GlobPatternError
from scanner.formats import DEFAULT_HANDLERS, select_handlers
from scanner.resource_parser import ResourceParser, DEFAULT_SIZE_THRESHOLD_MB
from exporters import to_ascii, to_json


logger = logging.getLogger("resource_scan")


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="resource-scan",
        description="Find and parse configuration and infrastructure resource files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  resource-scan .                              # Scan the current project
  resource-scan . infra -f json                # Scan only ./infra, JSON output
  resource-scan . -e '**/*.tfstate' '**/fixtures/**'
  resource-scan . --size-threshold-mb 0        # Never skip large files
  resource-scan . --formats yaml hcl           # Only YAML and HCL files
        """,
    )

    # Positional arguments
    parser.add_argument(
        "base",
        nargs="?",
        default=".",
        help="Project root; exclusions are relative to it (default: current directory)",
    )

    parser.add_argument(
        "search",
        nargs="*",
        help="Directories to scan, relative to the base (default: the base itself)",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["ascii", "json"],
        default="ascii",
        help="Output format (default: ascii)",
    )

    parser.add_argument(
        "--ascii-style",
        choices=["tree", "ascii"],
        default="tree",
        help="ASCII output style: 'tree' (Unicode) or 'ascii' (pure ASCII)",
    )

    # Scanning options
    parser.add_argument(
        "-e", "--exclude",
        nargs="+",
        default=[],
        metavar="GLOB",
        help="Glob patterns to exclude, relative to the base (e.g. '**/*.tfstate')",
    )

    parser.add_argument(
        "--size-threshold-mb",
        type=int,
        default=DEFAULT_SIZE_THRESHOLD_MB,
        help=f"Skip files larger than this many MiB; 0 disables (default: {DEFAULT_SIZE_THRESHOLD_MB})",
    )

    parser.add_argument(
        "--formats",
        nargs="+",
        default=None,
        choices=[handler.name for handler in DEFAULT_HANDLERS],
        help="Resource formats to parse (default: all)",
    )

    # Logging options
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging",
    )
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only show warnings and errors",
    )

    parsed = parser.parse_args(args)
    if parsed.size_threshold_mb < 0:
        parser.error("--size-threshold-mb must not be negative")
    return parsed


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr at the requested level."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def scan_all(parser: ResourceParser, base: Path, search_dirs: List[Path]) -> ScanResult:
    """
    Scan each search directory in turn, sharing one already-parsed set.

    The shared set holds paths relative to ``base``. Each scan gets the
    part of it under its own search directory, rebased onto that
    directory, and its skipped delta is mapped back to ``base``. Parsed
    and failed files are recorded too, so overlapping search directories
    do not parse the same file twice.

    Skipped paths in the combined result are relative to ``base``.
    """
    combined = ScanResult()
    seen: Set[Path] = set()

    for search_dir in search_dirs:
        prefix = get_relative_path(search_dir, base)
        local = {path.relative_to(prefix) for path in seen if path.is_relative_to(prefix)}
        result = parser.scan(base, search_dir, local)

        skipped = {get_relative_path(search_dir / path, base) for path in result.skipped}
        seen |= skipped
        seen.update(source.path for source in result.sources)
        seen.update(get_relative_path(error.path, base) for error in result.errors)

        combined.sources.extend(result.sources)
        combined.skipped |= skipped
        combined.errors.extend(result.errors)

    return combined


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)
    configure_logging(parsed.verbose, parsed.quiet)

    # Resolve paths
    base = Path(parsed.base).resolve()
    if not base.is_dir():
        print(f"Error: '{parsed.base}' is not a directory", file=sys.stderr)
        return 1

    search_dirs = [(base / search).resolve() for search in parsed.search] or [base]

    try:
        parser = ResourceParser(
            exclusions=parsed.exclude,
            size_threshold_mb=parsed.size_threshold_mb,
            handlers=select_handlers(parsed.formats),
        )
    except GlobPatternError as e:
        print(f"Error: invalid exclusion pattern: {e}", file=sys.stderr)
        return 1

    try:
        result = scan_all(parser, base, search_dirs)
    except TraversalError as e:
        print(f"Error scanning {e.path}: {e.cause}", file=sys.stderr)
        return 1

    logger.debug("Parsed %d resource(s), skipped %d, %d error(s)",
                 len(result.sources), len(result.skipped), len(result.errors))

    # Generate output
    if parsed.format == "json":
        output = to_json(result)
    else:  # ascii (default)
        output = to_ascii(result, style=parsed.ascii_style)

    # Write output
    if parsed.output:
        try:
            output_path = Path(parsed.output)
            output_path.write_text(output, encoding="utf-8")
            print(f"Output written to: {output_path}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
