"""
Tests for the .env codec.

Tests cover:
- Key/value parsing with quoting, escaping and inline comments
- Comment association and empty line preservation
- Serialization quoting rules and round trips
- Plain exports with secret masking
"""
import pytest

from envault.parser import EnvEntry, export_env, parse_env, serialize_env


def value_of(content: str, key: str, **options) -> str:
    return parse_env(content, **options).map[key].value


# --- Test Parsing ---

class TestParseEnv:
    """Tests for parse_env."""

    def test_basic_pairs(self):
        result = parse_env("FOO=bar\nBAZ=qux")
        assert result.keys == ["FOO", "BAZ"]
        assert result.map["FOO"].value == "bar"
        assert result.map["BAZ"].value == "qux"

    def test_empty_value(self):
        assert value_of("EMPTY=", "EMPTY") == ""

    def test_unquoted_spaces_kept(self):
        assert value_of("SPACED=value with spaces", "SPACED") == "value with spaces"

    def test_double_quoted(self):
        assert value_of('QUOTED="hello world"', "QUOTED") == "hello world"

    def test_single_quoted_is_literal(self):
        assert value_of("SINGLE='no $expansion'", "SINGLE") == "no $expansion"
        assert value_of("RAW='a\\nb'", "RAW") == "a\\nb"

    def test_escaped_quotes(self):
        assert value_of('ESCAPED="say \\"hello\\""', "ESCAPED") == 'say "hello"'

    def test_escaped_newline_and_tab(self):
        assert value_of('MULTILINE="line1\\nline2"', "MULTILINE") == "line1\nline2"
        assert value_of('TABBED="a\\tb"', "TABBED") == "a\tb"

    def test_escaped_backslash(self):
        assert value_of('PATH_LIKE="C:\\\\dir"', "PATH_LIKE") == "C:\\dir"

    def test_single_quote_char_is_not_quoted(self):
        assert value_of('ONE="', "ONE") == '"'

    def test_value_with_equals(self):
        assert value_of("EQUATION=a=b=c", "EQUATION") == "a=b=c"

    def test_comments_ignored(self):
        result = parse_env("# This is a comment\nFOO=bar")
        assert result.keys == ["FOO"]
        assert result.map["FOO"].comment is None

    def test_inline_comment_stripped(self):
        assert value_of("FOO=bar # this is ignored", "FOO") == "bar"

    def test_hash_without_space_kept(self):
        assert value_of("COLOR=#fff", "COLOR") == "#fff"

    def test_inline_comment_kept_in_quotes(self):
        assert value_of('FOO="bar # kept"', "FOO") == "bar # kept"

    def test_line_without_equals_skipped(self):
        result = parse_env("JUSTAKEY\nFOO=bar")
        assert result.keys == ["FOO"]
        assert len(result.entries) == 1

    def test_empty_key_skipped(self):
        assert parse_env("=value").keys == []

    def test_whitespace_around_key(self):
        assert value_of("  FOO  =  bar  ", "FOO") == "bar"

    def test_crlf_line_endings(self):
        result = parse_env("FOO=bar\r\nBAZ=qux\r\n")
        assert result.to_dict() == {"FOO": "bar", "BAZ": "qux"}

    def test_leading_byte_order_mark(self):
        result = parse_env("\ufeffFOO=bar\nBAZ=qux")
        assert result.keys == ["FOO", "BAZ"]
        assert result.map["FOO"].value == "bar"

    def test_original_line(self):
        result = parse_env("  SPACED_KEY=value  ")
        assert result.map["SPACED_KEY"].original_line == "  SPACED_KEY=value"

    def test_duplicate_keys(self):
        result = parse_env("FOO=1\nBAR=2\nFOO=3")
        assert result.keys == ["FOO", "BAR"]
        assert result.map["FOO"].value == "3"
        assert [entry.value for entry in result.entries] == ["1", "2", "3"]

    def test_empty_lines(self):
        result = parse_env("FOO=bar\n\nBAZ=qux")
        assert result.keys == ["FOO", "BAZ"]
        assert len(result.entries) == 2


class TestParseOptions:
    """Tests for preserve_comments and preserve_empty_lines."""

    def test_preserve_comments(self):
        result = parse_env("# Config section\nFOO=bar", preserve_comments=True)
        assert result.map["FOO"].comment == "Config section"

    def test_comment_resets_after_entry(self):
        result = parse_env("# first\nFOO=1\nBAR=2", preserve_comments=True)
        assert result.map["FOO"].comment == "first"
        assert result.map["BAR"].comment is None

    def test_comment_resets_on_blank_line(self):
        result = parse_env("# dangling\n\nFOO=1", preserve_comments=True)
        assert result.map["FOO"].comment is None

    def test_preserve_empty_lines(self):
        result = parse_env("FOO=1\n\nBAR=2", preserve_empty_lines=True)
        assert len(result.entries) == 3
        blank = result.entries[1]
        assert blank.key == ""
        assert blank.original_line == ""
        assert result.keys == ["FOO", "BAR"]


# --- Test Serialization ---

class TestSerializeEnv:
    """Tests for serialize_env."""

    def test_basic(self):
        assert serialize_env([EnvEntry(key="FOO", value="bar")]) == "FOO=bar\n"

    def test_accepts_mappings(self):
        assert serialize_env([{"key": "FOO", "value": "bar"}]) == "FOO=bar\n"

    def test_quotes_spaces(self):
        result = serialize_env([EnvEntry(key="SPACED", value="hello world")])
        assert result == 'SPACED="hello world"\n'

    def test_escapes_quotes(self):
        result = serialize_env([EnvEntry(key="QUOTED", value='say "hello"')])
        assert result == 'QUOTED="say \\"hello\\""\n'

    def test_escapes_newline(self):
        result = serialize_env([EnvEntry(key="ML", value="a\nb")])
        assert result == 'ML="a\\nb"\n'

    @pytest.mark.parametrize("value", ["a#b", "a=b", "it's"])
    def test_quotes_special_characters(self, value):
        assert serialize_env([EnvEntry(key="K", value=value)]) == f'K="{value}"\n'

    def test_comment(self):
        result = serialize_env([EnvEntry(key="FOO", value="bar", comment="Config")])
        assert result == "# Config\nFOO=bar\n"

    def test_empty_line_entry(self):
        entries = [EnvEntry(original_line=""), EnvEntry(key="FOO", value="bar")]
        assert serialize_env(entries) == "\nFOO=bar\n"

    def test_comment_only_entry(self):
        assert serialize_env([EnvEntry(comment="just a note")]) == "# just a note\n"

    def test_keyless_entry_without_marker_dropped(self):
        assert serialize_env([EnvEntry()]) == ""

    def test_no_entries(self):
        assert serialize_env([]) == ""

    def test_round_trip(self):
        entries = [
            EnvEntry(key="PLAIN", value="bar"),
            EnvEntry(key="SPACED", value="hello world"),
            EnvEntry(key="QUOTE", value='say "hi"'),
            EnvEntry(key="MULTI", value="line1\nline2\tend"),
            EnvEntry(key="HASH", value="a # b"),
            EnvEntry(key="EMPTY", value=""),
            EnvEntry(key="UNICODE", value="héllo wörld"),
        ]
        parsed = parse_env(serialize_env(entries))
        assert parsed.to_dict() == {entry.key: entry.value for entry in entries}

    def test_round_trip_preserves_comments(self):
        content = "# Database\nDB_HOST=localhost\n\n# Cache\nREDIS_URL=redis://cache"
        parsed = parse_env(content, preserve_comments=True, preserve_empty_lines=True)
        assert serialize_env(parsed.entries) == content + "\n"


# --- Test Export ---

class TestExportEnv:
    """Tests for export_env."""

    def test_sorted_output(self):
        assert export_env({"B": "2", "A": "1"}) == "A=1\nB=2\n"

    def test_empty_values_dropped(self):
        assert export_env({"A": "", "B": "2"}) == "B=2\n"
        assert export_env({"A": "", "B": "2"}, include_empty=True) == "A=\nB=2\n"

    def test_mask_secrets(self):
        content = export_env(
            {"DB_PASSWORD": "hunter2", "PORT": "80", "CUSTOM": "x"},
            secret_keys=["CUSTOM"],
            mask=True,
        )
        assert content == "CUSTOM=****\nDB_PASSWORD=****\nPORT=80\n"

    def test_unmasked_by_default(self):
        assert export_env({"DB_PASSWORD": "hunter2"}) == "DB_PASSWORD=hunter2\n"

    def test_no_variables(self):
        assert export_env({}) == "\n"
