"""
Dotenv Codec — Parse and serialize the ``.env`` file format.

Supported grammar, one statement per line:

- blank lines (optionally preserved as empty entries)
- ``# comment`` lines (optionally attached to the next variable)
- ``KEY=value`` with unquoted, ``"double quoted"`` or ``'single quoted'``
  values; only double quoted values understand escapes
- unquoted values drop an inline `` # comment``

Lines without ``=`` are skipped silently: partial files are common and
must not fail an import.
"""
import re
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .classifier import is_secret_key

EXPORT_MASK = "****"

# Characters that force a value to be quoted on output.
_NEEDS_QUOTES = re.compile(r"[\s#='\"]")


class EnvEntry(BaseModel):
    """A single parsed line. Entries with an empty key are layout-only."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = ""
    value: str = ""
    comment: Optional[str] = None
    original_line: Optional[str] = Field(default=None, alias="originalLine")


class ParseResult(BaseModel):
    """Output of :func:`parse_env`.

    ``entries`` keeps every occurrence in file order, ``map`` keeps the
    last occurrence of each key and ``keys`` lists unique keys in order of
    first appearance.
    """

    entries: list[EnvEntry] = Field(default_factory=list)
    map: dict[str, EnvEntry] = Field(default_factory=dict)
    keys: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict[str, str]:
        """Return a plain ``{key: value}`` mapping."""
        return {key: entry.value for key, entry in self.map.items()}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _parse_value(raw: str) -> str:
    value = raw.strip()

    if len(value) > 1 and value.startswith('"') and value.endswith('"'):
        # Substitutions run in this fixed order, backslash last.
        return (
            value[1:-1]
            .replace('\\"', '"')
            .replace("\\n", "\n")
            .replace("\\t", "\t")
            .replace("\\\\", "\\")
        )

    if len(value) > 1 and value.startswith("'") and value.endswith("'"):
        return value[1:-1]

    hash_index = value.find(" #")
    if hash_index != -1:
        return value[:hash_index].strip()
    return value


def parse_env(
    content: str,
    preserve_comments: bool = False,
    preserve_empty_lines: bool = False,
) -> ParseResult:
    """Parse ``.env`` content into structured entries.

    Args:
        content: Raw file content.
        preserve_comments: Attach the preceding ``#`` comment to each entry.
        preserve_empty_lines: Keep blank lines as key-less entries.

    Returns:
        ParseResult with ordered entries, a last-wins lookup map and the
        ordered unique keys.
    """
    result = ParseResult()
    current_comment = ""

    for original_line in content.removeprefix("\ufeff").split("\n"):
        trimmed = original_line.strip()

        if not trimmed:
            if preserve_empty_lines:
                result.entries.append(
                    EnvEntry(comment=current_comment or None, original_line="")
                )
            current_comment = ""
            continue

        if trimmed.startswith("#"):
            if preserve_comments:
                current_comment = trimmed[1:].strip()
            continue

        key, sep, raw_value = trimmed.partition("=")
        key = key.strip()
        if not sep or not key:
            continue

        entry = EnvEntry(
            key=key,
            value=_parse_value(raw_value),
            comment=current_comment or None,
            original_line=original_line.rstrip(),
        )
        result.entries.append(entry)
        if key not in result.map:
            result.keys.append(key)
        result.map[key] = entry
        current_comment = ""

    return result


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _serialize_value(value: str) -> str:
    if not _NEEDS_QUOTES.search(value):
        return value

    if any(char in value for char in ('"', "\\", "\n", "\t")):
        value = (
            value.replace("\\", "\\\\")
            .replace('"', '\\"')
            .replace("\n", "\\n")
            .replace("\t", "\\t")
        )
    return f'"{value}"'


def serialize_env(entries: Iterable[Union[EnvEntry, Mapping[str, Any]]]) -> str:
    """Serialize entries back to ``.env`` content.

    Key-less entries render as their comment or, when explicitly marked
    empty (``original_line == ""``), as a blank line.

    Args:
        entries: EnvEntry instances or equivalent mappings.

    Returns:
        File content, newline terminated when not empty.
    """
    lines: list[str] = []

    for item in entries:
        entry = item if isinstance(item, EnvEntry) else EnvEntry.model_validate(item)
        if not entry.key:
            if entry.comment:
                lines.append(f"# {entry.comment}")
            elif entry.original_line == "":
                lines.append("")
            continue

        if entry.comment:
            lines.append(f"# {entry.comment}")
        lines.append(f"{entry.key}={_serialize_value(entry.value)}")

    return "\n".join(lines) + ("\n" if lines else "")


def export_env(
    variables: Mapping[str, str],
    secret_keys: Iterable[str] = (),
    mask: bool = False,
    include_empty: bool = False,
) -> str:
    """Render plaintext variables as ``KEY=value`` lines for download.

    Keys are emitted in sorted order and values are written verbatim.

    Args:
        variables: Plaintext variables of one environment.
        secret_keys: Names explicitly flagged as secret.
        mask: Replace secret values with a fixed placeholder.
        include_empty: Keep variables whose value is empty.

    Returns:
        Export content, always newline terminated.
    """
    flagged = set(secret_keys)
    lines = []
    for key in sorted(variables):
        value = variables[key]
        if mask and (key in flagged or is_secret_key(key)):
            value = EXPORT_MASK
        if value == "" and not include_empty:
            continue
        lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n"
