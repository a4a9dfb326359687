"""
Secret Classifier — Flag variable names that likely hold sensitive values.

The classifier is a name heuristic only; it never looks at values. It is
shared by the diff engine, the exporter and the audit masking helpers so
that every surface agrees on what counts as a secret.
"""
import re
from collections.abc import Mapping
from typing import Any

# Matched case-insensitively anywhere in the variable name.
SECRET_PATTERNS: tuple[re.Pattern, ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"secret",
        r"password",
        r"token",
        r"key",
        r"api[_-]?key",
        r"auth",
        r"credential",
        r"private",
        r"passphrase",
        r"seed",
        r"mnemonic",
    )
)

MASK_CHAR = "*"
DOT_MASK_CHAR = "•"  # bullet, used by diff output and audit logs
AUDIT_MASK = DOT_MASK_CHAR * 6


def is_secret_key(name: str) -> bool:
    """Return True if ``name`` looks like the name of a secret variable.

    Args:
        name: Variable name, e.g. ``DB_PASSWORD``.

    Returns:
        True when any secret pattern matches.
    """
    return any(pattern.search(name) for pattern in SECRET_PATTERNS)


def mask_value(value: str, visible_chars: int = 4, mask_char: str = MASK_CHAR) -> str:
    """Mask a value, keeping ``visible_chars`` characters on each side.

    Values too short to reveal anything (``len <= visible_chars * 2``) are
    masked entirely, preserving their length.

    Args:
        value: Plaintext value.
        visible_chars: Characters left visible at the start and at the end.
        mask_char: Glyph used for hidden characters.

    Returns:
        Masked string with the same length as ``value``.
    """
    length = len(value)
    if length <= visible_chars * 2:
        return mask_char * length
    hidden = length - visible_chars * 2
    return value[:visible_chars] + mask_char * hidden + value[length - visible_chars:]


def mask_audit_details(details: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of audit details with secret values hidden.

    When ``isSecret`` is truthy, non-empty ``oldValue`` and ``newValue``
    are replaced by a fixed-length mask so the log does not reveal their
    length either.
    """
    masked = dict(details)
    if masked.get("isSecret"):
        for field in ("oldValue", "newValue"):
            if masked.get(field):
                masked[field] = AUDIT_MASK
    return masked
