"""
Diff Engine — Compare the plaintext variables of two environments.

Secret values are masked before they are attached to diff entries unless
the caller explicitly asks for plaintext; masking is not reversible here.
"""
import logging
from collections.abc import Iterable, Mapping
from typing import Literal, Optional

import orjson
from pydantic import BaseModel, ConfigDict, Field

from .classifier import DOT_MASK_CHAR, is_secret_key, mask_value

logger = logging.getLogger("envault.diff")

DIFF_VISIBLE_CHARS = 3

ChangeType = Literal["added", "removed", "changed", "unchanged"]


class DiffEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: str
    type: ChangeType
    source_value: Optional[str] = Field(default=None, alias="sourceValue")
    target_value: Optional[str] = Field(default=None, alias="targetValue")
    is_secret: bool = Field(default=False, alias="isSecret")


class DiffResult(BaseModel):
    """Classified differences between a source and a target environment.

    ``entries`` holds every classified entry except unchanged ones, which
    are only included on request; the per-type lists are always complete.
    """

    model_config = ConfigDict(populate_by_name=True)

    entries: list[DiffEntry] = Field(default_factory=list)
    added: list[DiffEntry] = Field(default_factory=list)
    removed: list[DiffEntry] = Field(default_factory=list)
    changed: list[DiffEntry] = Field(default_factory=list)
    unchanged: list[DiffEntry] = Field(default_factory=list)
    has_changes: bool = Field(default=False, alias="hasChanges")


def _shown(value: Optional[str], hide: bool) -> Optional[str]:
    if value is None or not hide:
        return value
    return mask_value(value, DIFF_VISIBLE_CHARS, DOT_MASK_CHAR)


def diff_envs(
    source: Mapping[str, str],
    target: Mapping[str, str],
    mask_secrets: bool = True,
    secret_keys: Iterable[str] = (),
    include_unchanged: bool = False,
) -> DiffResult:
    """Compare two variable maps.

    Args:
        source: Variables of the source environment.
        target: Variables of the target environment.
        mask_secrets: Mask values of secret variables.
        secret_keys: Names flagged as secret in addition to the classifier.
        include_unchanged: Keep unchanged variables in ``entries``.

    Returns:
        DiffResult. Keys are visited in source order, then target-only keys.
    """
    flagged = set(secret_keys)
    result = DiffResult()

    for key in dict.fromkeys([*source, *target]):
        source_value = source.get(key)
        target_value = target.get(key)
        is_secret = key in flagged or is_secret_key(key)
        hide = mask_secrets and is_secret

        if source_value is None:
            change: ChangeType = "added"
            bucket = result.added
        elif target_value is None:
            change = "removed"
            bucket = result.removed
        elif source_value != target_value:
            change = "changed"
            bucket = result.changed
        else:
            change = "unchanged"
            bucket = result.unchanged

        entry = DiffEntry(
            key=key,
            type=change,
            source_value=_shown(source_value, hide),
            target_value=_shown(target_value, hide),
            is_secret=is_secret,
        )
        bucket.append(entry)
        if include_unchanged or change != "unchanged":
            result.entries.append(entry)

    result.has_changes = bool(result.added or result.removed or result.changed)
    logger.debug("Diff computed: %s", diff_summary(result))
    return result


def format_diff(result: DiffResult, output: Literal["text", "json"] = "text") -> str:
    """Render a diff result as grouped text or pretty JSON.

    Args:
        result: Output of :func:`diff_envs`.
        output: ``"text"`` or ``"json"``.

    Returns:
        Formatted diff; text output for an empty diff is
        ``"No differences found."``.
    """
    if output == "json":
        data = result.model_dump(by_alias=True, exclude_none=True)
        return orjson.dumps(data, option=orjson.OPT_INDENT_2).decode("utf-8")
    if output != "text":
        raise ValueError(f"Unsupported diff format: {output}")

    if not result.has_changes:
        return "No differences found."

    lines: list[str] = []

    if result.added:
        lines.append(f"Added ({len(result.added)}):")
        for entry in result.added:
            lines.append(f"  + {entry.key}={entry.target_value or ''}")
        lines.append("")

    if result.removed:
        lines.append(f"Removed ({len(result.removed)}):")
        for entry in result.removed:
            lines.append(f"  - {entry.key}={entry.source_value or ''}")
        lines.append("")

    if result.changed:
        lines.append(f"Changed ({len(result.changed)}):")
        for entry in result.changed:
            lines.append(f"  ~ {entry.key}:")
            lines.append(f"    - {entry.source_value or ''}")
            lines.append(f"    + {entry.target_value or ''}")
        lines.append("")

    return "\n".join(lines)


def diff_summary(result: DiffResult) -> str:
    """One-line summary such as ``"1 added, 1 removed, 1 changed"``."""
    if not result.has_changes:
        return "No changes"

    parts = []
    if result.added:
        parts.append(f"{len(result.added)} added")
    if result.removed:
        parts.append(f"{len(result.removed)} removed")
    if result.changed:
        parts.append(f"{len(result.changed)} changed")
    return ", ".join(parts)
