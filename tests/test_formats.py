"""Tests for format handlers."""

import pytest
from pathlib import Path

from resources.model import SourceFile
from scanner.context import ExecutionContext, FileParseError
from scanner.formats import (
    DEFAULT_HANDLERS,
    HCL,
    JSON,
    PROPERTIES,
    TOML,
    XML,
    YAML,
    FormatHandler,
    load_properties,
    select_handlers,
)


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


class TestAccepts:
    """Tests for suffix-based acceptance."""

    def test_suffixes(self):
        """Handlers accept their own extensions."""
        assert JSON.accepts(Path("package.json"))
        assert XML.accepts(Path("pom.xml"))
        assert XML.accepts(Path("schema.xsd"))
        assert YAML.accepts(Path("deploy.yaml"))
        assert YAML.accepts(Path("deploy.yml"))
        assert PROPERTIES.accepts(Path("application.properties"))
        assert HCL.accepts(Path("main.tf"))
        assert HCL.accepts(Path("prod.tfvars"))
        assert TOML.accepts(Path("pyproject.toml"))

    def test_case_insensitive(self):
        """Extension matching ignores case."""
        assert YAML.accepts(Path("DEPLOY.YML"))

    def test_rejects_other_formats(self):
        """Handlers reject other extensions."""
        assert not JSON.accepts(Path("deploy.yaml"))
        assert not HCL.accepts(Path("terraform.tfstate"))
        assert not YAML.accepts(Path("README"))

    def test_default_handler_order(self):
        """Default handlers run in a fixed order."""
        assert [h.name for h in DEFAULT_HANDLERS] == [
            "json", "xml", "yaml", "properties", "hcl", "toml",
        ]


class TestParse:
    """Tests for batch parsing."""

    def test_json(self, tmp_path):
        """JSON files parse to their data with a base-relative path."""
        path = _write(tmp_path / "conf" / "app.json", '{"name": "app", "replicas": 2}')
        ctx = ExecutionContext()

        sources = JSON.parse([path], tmp_path, ctx)

        assert len(sources) == 1
        assert sources[0].path == Path("conf/app.json")
        assert sources[0].format == "json"
        assert sources[0].data == {"name": "app", "replicas": 2}
        assert ctx.errors == []

    def test_yaml_multiple_documents(self, tmp_path):
        """YAML data is the list of documents."""
        path = _write(tmp_path / "deploy.yaml", "kind: Service\n---\nkind: Deployment\n")

        sources = YAML.parse([path], tmp_path, ExecutionContext())

        assert sources[0].data == [{"kind": "Service"}, {"kind": "Deployment"}]

    def test_xml(self, tmp_path):
        """XML files parse to an element tree."""
        path = _write(
            tmp_path / "pom.xml",
            '<?xml version="1.0"?>\n<project><artifactId>app</artifactId></project>\n',
        )

        sources = XML.parse([path], tmp_path, ExecutionContext())

        assert sources[0].data.tag == "project"
        assert sources[0].data.find("artifactId").text == "app"

    def test_properties(self, tmp_path):
        """Properties files parse to a dict."""
        path = _write(tmp_path / "application.properties", "server.port=8080\n")

        sources = PROPERTIES.parse([path], tmp_path, ExecutionContext())

        assert sources[0].data == {"server.port": "8080"}

    def test_hcl(self, tmp_path):
        """HCL files parse with python-hcl2."""
        path = _write(
            tmp_path / "main.tf",
            'variable "region" {\n  default = "us-east-1"\n}\n',
        )
        ctx = ExecutionContext()

        sources = HCL.parse([path], tmp_path, ctx)

        assert ctx.errors == []
        assert "variable" in sources[0].data

    def test_toml(self, tmp_path):
        """TOML files parse with tomllib."""
        path = _write(tmp_path / "pyproject.toml", '[project]\nname = "demo"\n')

        sources = TOML.parse([path], tmp_path, ExecutionContext())

        assert sources[0].data == {"project": {"name": "demo"}}

    def test_failure_reported_and_batch_continues(self, tmp_path):
        """A bad file is reported and the batch continues."""
        bad = _write(tmp_path / "bad.json", "{not json")
        good = _write(tmp_path / "good.json", '{"ok": true}')
        ctx = ExecutionContext()

        sources = JSON.parse([bad, good], tmp_path, ctx)

        assert [s.path for s in sources] == [Path("good.json")]
        assert len(ctx.errors) == 1
        assert ctx.errors[0].path == bad
        assert isinstance(ctx.errors[0].cause, ValueError)

    def test_unreadable_file_reported(self, tmp_path):
        """Read errors are reported like parse errors."""
        missing = tmp_path / "gone.json"
        ctx = ExecutionContext()

        assert JSON.parse([missing], tmp_path, ctx) == []
        assert isinstance(ctx.errors[0].cause, OSError)

    def test_keeps_input_order(self, tmp_path):
        """Sources come back in input order."""
        paths = [
            _write(tmp_path / "b.json", "1"),
            _write(tmp_path / "a.json", "2"),
        ]

        sources = JSON.parse(paths, tmp_path, ExecutionContext())

        assert [s.path for s in sources] == [Path("b.json"), Path("a.json")]

    def test_custom_handler(self, tmp_path):
        """Any loader callable makes a handler."""
        path = _write(tmp_path / "notes.txt", "  hello  ")
        handler = FormatHandler("text", frozenset({".txt"}), str.strip)

        sources = handler.parse([path], tmp_path, ExecutionContext())

        assert sources == [SourceFile(Path("notes.txt"), "text", "hello")]


class TestLoadProperties:
    """Tests for the .properties reader."""

    def test_separators(self):
        """Keys and values split on '=', ':' or whitespace."""
        content = "a=1\nb = 2\nc:3\nd 4\ne\n"

        assert load_properties(content) == {"a": "1", "b": "2", "c": "3", "d": "4", "e": ""}

    def test_comments_and_blank_lines(self):
        """Comments and blank lines are ignored."""
        content = "# comment\n! also a comment\n\n   \nkey=value\n"

        assert load_properties(content) == {"key": "value"}

    def test_continuation_lines(self):
        """Trailing backslash continues a line."""
        content = "fruits=apple, \\\n        banana, \\\n        pear\nnext=1\n"

        assert load_properties(content) == {"fruits": "apple, banana, pear", "next": "1"}

    def test_escaped_backslash_is_not_continuation(self):
        """An escaped trailing backslash ends the line."""
        content = "path=C:\\\\temp\\\\\nother=x\n"

        assert load_properties(content) == {"path": "C:\\temp\\", "other": "x"}

    def test_escapes(self):
        """Backslash escapes are decoded in keys and values."""
        content = "tab=a\\tb\nnl=a\\nb\nuni=caf\\u00e9\nkey\\=with\\:seps=v\n"

        assert load_properties(content) == {
            "tab": "a\tb",
            "nl": "a\nb",
            "uni": "café",
            "key=with:seps": "v",
        }

    def test_later_keys_override(self):
        """The last value for a key wins."""
        assert load_properties("a=1\na=2\n") == {"a": "2"}

    def test_value_keeps_extra_separator(self):
        """Only the first separator is consumed."""
        assert load_properties("a==b\n") == {"a": "=b"}

    def test_malformed_unicode_escape(self):
        """A short unicode escape raises ValueError."""
        with pytest.raises(ValueError):
            load_properties("bad=\\u12\n")

    def test_only_cr_and_lf_end_lines(self):
        """Only CR, LF and CRLF end a line."""
        content = "key=a\fb\vc\u2028d\r\nnext=1\rlast=2\n"

        assert load_properties(content) == {"key": "a\fb\vc\u2028d", "next": "1", "last": "2"}

    def test_form_feed_separates_key_and_value(self):
        """Form feed counts as whitespace."""
        assert load_properties("\fkey\fvalue\n") == {"key": "value"}


class TestSelectHandlers:
    """Tests for handler selection."""

    def test_all_by_default(self):
        """No names selects every handler."""
        assert select_handlers() == list(DEFAULT_HANDLERS)

    def test_keeps_declaration_order(self):
        """Selection keeps the default order."""
        assert select_handlers(["toml", "JSON"]) == [JSON, TOML]

    def test_unknown_name(self):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="ini"):
            select_handlers(["yaml", "ini"])


class TestExecutionContext:
    """Tests for error accumulation."""

    def test_report_forwards_to_callback(self):
        """Reported errors are stored and forwarded."""
        seen = []
        ctx = ExecutionContext(seen.append)
        error = FileParseError(Path("a.json"), ValueError("boom"))

        ctx.report(error)

        assert ctx.errors == [error]
        assert seen == [error]
        assert "a.json" in str(error)
