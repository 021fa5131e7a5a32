"""Scanner module for resource discovery, admission and parsing."""

from .admission import AdmissionFilter
from .context import ExecutionContext, FileParseError
from .discovery import iter_resources, walk, TraversalError
from .exclusions import ExclusionMatcher, GlobPatternError, compile_glob
from .formats import FormatHandler, DEFAULT_HANDLERS, select_handlers
from .resource_parser import ResourceParser, parse_resources

__all__ = [
    "AdmissionFilter",
    "ExecutionContext",
    "FileParseError",
    "iter_resources",
    "walk",
    "TraversalError",
    "ExclusionMatcher",
    "GlobPatternError",
    "compile_glob",
    "FormatHandler",
    "DEFAULT_HANDLERS",
    "select_handlers",
    "ResourceParser",
    "parse_resources",
]
