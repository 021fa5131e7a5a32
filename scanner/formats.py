"""Format handlers: which files each resource format accepts, and how to parse them."""

import json
import re
import string
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Tuple
from xml.etree import ElementTree

import hcl2
import yaml

from resources.model import SourceFile
from .context import ExecutionContext, FileParseError
from .discovery import get_relative_path


@dataclass(frozen=True)
class FormatHandler:
    """
    Accept/parse pair for one resource format.

    A file is accepted when its suffix is one of ``extensions``. Parsing
    reads each accepted file as UTF-8 and passes the text to ``loader``.
    """

    name: str
    extensions: FrozenSet[str]
    loader: Callable[[str], Any]

    def accepts(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def parse(
        self,
        paths: Iterable[Path],
        base_dir: Path,
        ctx: ExecutionContext,
    ) -> List[SourceFile]:
        """
        Parse a batch of files.

        Files that cannot be read or parsed are reported to ``ctx`` and
        left out of the result; the rest of the batch is still parsed.

        Args:
            paths: Files to parse.
            base_dir: Directory the resulting source paths are relative to.
            ctx: Context receiving per-file errors.

        Returns:
            Parsed sources, in the order of ``paths``.
        """
        sources: List[SourceFile] = []
        for path in paths:
            try:
                data = self.loader(path.read_text(encoding="utf-8"))
            except Exception as e:
                ctx.report(FileParseError(path, e))
                continue
            sources.append(SourceFile(get_relative_path(path, base_dir), self.name, data))
        return sources

    def __repr__(self) -> str:
        return f"FormatHandler(name={self.name!r}, extensions={sorted(self.extensions)!r})"


def load_yaml(content: str) -> List[Any]:
    """Load every document of a YAML stream."""
    return list(yaml.safe_load_all(content))


def load_xml(content: str) -> ElementTree.Element:
    return ElementTree.fromstring(content)


# Escapes recognized in .properties keys and values
PROPERTIES_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
PROPERTIES_WHITESPACE = " \t\f"


def load_properties(content: str) -> Dict[str, str]:
    """
    Load a Java-style ``.properties`` file.

    Handles ``#`` and ``!`` comments, ``=``, ``:`` or whitespace between key
    and value, backslash line continuations, and ``\\t``/``\\n``/``\\uXXXX``
    escapes. Later keys override earlier ones.

    Raises:
        ValueError: On a malformed ``\\uXXXX`` escape.
    """
    properties: Dict[str, str] = {}
    for line in _logical_lines(content):
        key, value = _split_property(line)
        properties[_unescape(key)] = _unescape(value)
    return properties


def _logical_lines(content: str) -> Iterator[str]:
    """Join continued lines and drop blank and comment lines."""
    pending: Optional[str] = None
    for raw in re.split(r"\r\n|\r|\n", content):
        line = raw.lstrip(PROPERTIES_WHITESPACE)
        if pending is None and (not line or line[0] in "#!"):
            continue
        if _is_continued(line):
            pending = (pending or "") + line[:-1]
            continue
        yield line if pending is None else pending + line
        pending = None
    if pending is not None:
        yield pending


def _is_continued(line: str) -> bool:
    """A line is continued when it ends with an odd number of backslashes."""
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _split_property(line: str) -> Tuple[str, str]:
    i = 0
    n = len(line)
    while i < n:
        c = line[i]
        if c == "\\":
            i += 2
            continue
        if c in "=:" or c in PROPERTIES_WHITESPACE:
            break
        i += 1

    key = line[:i]
    rest = line[i:].lstrip(PROPERTIES_WHITESPACE)
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(PROPERTIES_WHITESPACE)
    return key, rest


def _unescape(value: str) -> str:
    if "\\" not in value:
        return value

    out: List[str] = []
    i = 0
    n = len(value)
    while i < n:
        c = value[i]
        if c != "\\" or i + 1 == n:
            out.append(c)
            i += 1
            continue

        escaped = value[i + 1]
        if escaped == "u":
            digits = value[i + 2:i + 6]
            if len(digits) < 4 or any(d not in string.hexdigits for d in digits):
                raise ValueError(f"Malformed \\uxxxx encoding: {value[i:i + 6]!r}")
            out.append(chr(int(digits, 16)))
            i += 6
        else:
            out.append(PROPERTIES_ESCAPES.get(escaped, escaped))
            i += 2
    return "".join(out)


JSON = FormatHandler("json", frozenset({".json"}), json.loads)
XML = FormatHandler(
    "xml",
    frozenset({".xml", ".xsd", ".xsl", ".xslt", ".wsdl", ".xhtml", ".tld", ".xjb"}),
    load_xml,
)
YAML = FormatHandler("yaml", frozenset({".yml", ".yaml"}), load_yaml)
PROPERTIES = FormatHandler("properties", frozenset({".properties"}), load_properties)
HCL = FormatHandler("hcl", frozenset({".tf", ".tfvars", ".hcl"}), hcl2.loads)
TOML = FormatHandler("toml", frozenset({".toml"}), tomllib.loads)

# Results are aggregated in this order
DEFAULT_HANDLERS: Tuple[FormatHandler, ...] = (JSON, XML, YAML, PROPERTIES, HCL, TOML)


def select_handlers(
    names: Optional[Iterable[str]] = None,
    handlers: Sequence[FormatHandler] = DEFAULT_HANDLERS,
) -> List[FormatHandler]:
    """
    Pick handlers by name, keeping their declaration order.

    Args:
        names: Format names to keep. If None, all handlers are kept.
        handlers: Handlers to choose from.

    Raises:
        ValueError: If a name does not match any handler.
    """
    if names is None:
        return list(handlers)

    wanted = {name.lower() for name in names}
    known = {handler.name for handler in handlers}
    unknown = sorted(wanted - known)
    if unknown:
        raise ValueError(
            f"Unknown format(s): {', '.join(unknown)} (expected one of: {', '.join(sorted(known))})"
        )
    return [handler for handler in handlers if handler.name in wanted]
