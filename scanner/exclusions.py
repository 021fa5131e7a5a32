"""Glob exclusion patterns, matched relative to a base directory."""

import copy
import os
import re
from pathlib import Path
from typing import Iterable, List, Pattern, Tuple, Union


class GlobPatternError(ValueError):
    """Raised when an exclusion glob cannot be compiled."""

    def __init__(self, pattern: str, index: int, reason: str):
        self.pattern = pattern
        self.index = index
        self.reason = reason
        super().__init__(f"{reason} near index {index} in glob {pattern!r}")


def compile_glob(pattern: str) -> Pattern[str]:
    """
    Compile a glob pattern into a regular expression.

    Supported syntax:
    - ``*`` matches zero or more characters within one path segment.
    - ``**`` matches zero or more characters across segments.
    - ``?`` matches exactly one character other than ``/``.
    - ``[abc]``, ``[a-z]`` and ``[!a-z]`` match one character from a class.
    - ``{a,b}`` matches either alternative. Groups cannot be nested.
    - ``\\`` escapes the following character.

    Args:
        pattern: Glob pattern, using ``/`` as the separator.

    Returns:
        Compiled regex, to be used with ``fullmatch``.

    Raises:
        GlobPatternError: If the pattern is malformed.
    """
    regex: List[str] = []
    in_group = False
    i = 0
    n = len(pattern)

    while i < n:
        c = pattern[i]
        i += 1

        if c == "\\":
            if i == n:
                raise GlobPatternError(pattern, i - 1, "No character to escape")
            regex.append(re.escape(pattern[i]))
            i += 1
        elif c == "*":
            if i < n and pattern[i] == "*":
                regex.append(".*")
                i += 1
            else:
                regex.append("[^/]*")
        elif c == "?":
            regex.append("[^/]")
        elif c == "[":
            translated, i = _translate_class(pattern, i - 1)
            regex.append(translated)
        elif c == "{":
            if in_group:
                raise GlobPatternError(pattern, i - 1, "Cannot nest groups")
            regex.append("(?:")
            in_group = True
        elif c == "}" and in_group:
            regex.append(")")
            in_group = False
        elif c == "," and in_group:
            regex.append("|")
        else:
            regex.append(re.escape(c))

    if in_group:
        raise GlobPatternError(pattern, n, "Missing '}'")

    return re.compile("".join(regex), re.DOTALL)


def _translate_class(pattern: str, start: int) -> Tuple[str, int]:
    """
    Translate the character class opening at ``pattern[start]``.

    Inside a class ``\\`` is a literal backslash. A class never matches
    ``/``, even through a range such as ``[.-0]``.

    Returns:
        The regex class and the index just past the closing ``]``.
    """
    n = len(pattern)
    i = start + 1
    negate = i < n and pattern[i] == "!"
    if negate:
        i += 1

    members: List[str] = []
    last = None

    while i < n:
        c = pattern[i]

        if c == "]":
            if not members:
                raise GlobPatternError(pattern, i, "Empty character class")
            body = "".join(members)
            return ("(?!/)[" + ("^" if negate else "") + body + "]"), i + 1

        if c == "/":
            raise GlobPatternError(pattern, i, "Explicit 'name separator' in class")

        if c == "-" and last is not None and i + 1 < n and pattern[i + 1] != "]":
            upper = pattern[i + 1]
            if upper == "/":
                raise GlobPatternError(pattern, i + 1, "Explicit 'name separator' in class")
            if upper < last:
                raise GlobPatternError(pattern, i, "Invalid range")
            members.append("-" + re.escape(upper))
            last = None
            i += 2
            continue

        members.append(re.escape(c))
        last = c
        i += 1

    raise GlobPatternError(pattern, start, "Missing ']'")


class ExclusionMatcher:
    """
    A set of exclusion globs scoped to a base directory.

    Patterns are compiled once, when the matcher is built. Paths are
    always matched in their form relative to ``base_dir``, never to the
    directory being searched: exclusions are written against the project
    root even when a deeper subtree is scanned.
    """

    def __init__(self, base_dir: Union[str, Path], patterns: Iterable[str] = ()):
        if isinstance(patterns, str):
            raise TypeError(f"patterns must be a collection of globs, not a single string: {patterns!r}")
        self.base_dir = Path(base_dir)
        self.patterns: Tuple[str, ...] = tuple(patterns)
        self._compiled = [compile_glob(pattern) for pattern in self.patterns]

    def with_base(self, base_dir: Union[str, Path]) -> "ExclusionMatcher":
        """Return a matcher for the same patterns scoped to another base directory."""
        matcher = copy.copy(self)
        matcher.base_dir = Path(base_dir)
        return matcher

    def relativize(self, path: Union[str, Path]) -> str:
        """Return ``path`` relative to the base directory, ``/``-separated."""
        return Path(os.path.relpath(path, self.base_dir)).as_posix()

    def matches(self, path: Union[str, Path]) -> bool:
        """Check whether any exclusion pattern matches ``path``."""
        if not self._compiled:
            return False
        relative = self.relativize(path)
        return any(regex.fullmatch(relative) for regex in self._compiled)

    def __repr__(self) -> str:
        return f"ExclusionMatcher(base_dir={str(self.base_dir)!r}, patterns={list(self.patterns)!r})"
