"""
Schema Validator — Describe and check the variables an environment needs.

A schema comes either from ``env.schema.json`` (nested ``{"fields": ...}``
or flat ``{"KEY": {...}}``) or from a ``.env.example`` file, where a bare
``KEY`` line is required and ``KEY=value`` is optional with a default.

Validation problems are returned as data; only malformed schema input
raises (:class:`~envault.exceptions.SchemaFormatError`).
"""
import logging
import re
from collections.abc import Mapping
from typing import Literal, Optional, Union

import orjson
from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from .exceptions import SchemaFormatError

logger = logging.getLogger("envault.schema")

FieldType = Literal["string", "number", "boolean", "url", "email"]
IssueType = Literal[
    "missing", "extra", "invalid_type", "invalid_format", "too_short", "too_long",
]

_RESERVED_KEYS = frozenset({"$schema", "version"})
_BOOLEAN = re.compile(r"^(true|false|1|0|yes|no)$", re.IGNORECASE)
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_DECIMAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_RADIX = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")
_INFINITY = re.compile(r"^[+-]?Infinity$")

_url_adapter = TypeAdapter(AnyUrl)


class SchemaField(BaseModel):
    """Rules for a single variable."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Optional[FieldType] = None
    required: Optional[bool] = None
    default: Optional[str] = None
    regex: Optional[str] = None
    min_length: Optional[int] = Field(default=None, alias="minLength")
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    description: Optional[str] = None
    secret: Optional[bool] = None

    @field_validator("default", mode="before")
    @classmethod
    def _stringify_default(cls, value):
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value


class EnvSchema(BaseModel):
    """Ordered mapping of variable name to :class:`SchemaField`."""

    version: Optional[Union[str, int]] = None
    fields: dict[str, SchemaField] = Field(default_factory=dict)


class ValidationIssue(BaseModel):
    key: str
    type: IssueType
    message: str
    value: Optional[str] = None


class ValidationResult(BaseModel):
    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Schema parsing
# ---------------------------------------------------------------------------

def parse_env_example(content: str) -> EnvSchema:
    """Build a schema from ``.env.example`` content.

    Args:
        content: File content. Comments and blank lines are ignored.

    Returns:
        EnvSchema where bare keys are required and ``KEY=value`` lines are
        optional with ``value`` (if not empty) as default.
    """
    fields: dict[str, SchemaField] = {}

    for line in content.removeprefix("\ufeff").split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue

        key, sep, value = trimmed.partition("=")
        if not sep:
            fields[trimmed] = SchemaField(required=True)
            continue
        value = value.strip()
        fields[key.strip()] = SchemaField(required=False, default=value or None)

    return EnvSchema(fields=fields)


def parse_schema_json(content: str) -> EnvSchema:
    """Parse ``env.schema.json`` content.

    Args:
        content: JSON text, either ``{"fields": {...}}`` or flat
            ``{"KEY": {...}}`` where ``$schema`` and ``version`` are skipped.

    Returns:
        Parsed EnvSchema.

    Raises:
        SchemaFormatError: Invalid JSON or field definitions.
    """
    try:
        parsed = orjson.loads(content)
    except orjson.JSONDecodeError as err:
        raise SchemaFormatError(f"Invalid JSON schema: {err}") from err

    if not isinstance(parsed, dict):
        raise SchemaFormatError("Invalid JSON schema: expected an object")

    try:
        if isinstance(parsed.get("fields"), dict):
            return EnvSchema.model_validate(parsed)
        fields = {
            key: value for key, value in parsed.items()
            if key not in _RESERVED_KEYS
        }
        return EnvSchema.model_validate({"fields": fields})
    except ValidationError as err:
        raise SchemaFormatError(f"Invalid JSON schema: {err}") from err


def load_schema(content: str) -> EnvSchema:
    """Parse schema content of either supported format.

    Content starting with ``{`` is JSON, anything else is ``.env.example``.
    """
    if content.strip().startswith("{"):
        return parse_schema_json(content)
    return parse_env_example(content)


def serialize_schema(schema: EnvSchema) -> str:
    """Serialize a schema to pretty JSON, omitting unset attributes."""
    data = schema.model_dump(by_alias=True, exclude_none=True)
    return orjson.dumps(data, option=orjson.OPT_INDENT_2).decode("utf-8")


def generate_env_example(schema: EnvSchema) -> str:
    """Render a ``.env.example`` file from a schema.

    Each field gets its description as a comment, then ``KEY=`` when
    required or ``KEY=default`` when optional, then a blank line.
    """
    lines: list[str] = []
    for key, field in schema.fields.items():
        if field.description:
            lines.append(f"# {field.description}")
        if field.required:
            lines.append(f"{key}=")
        else:
            lines.append(f"{key}={field.default or ''}")
        lines.append("")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _is_number(value: str) -> bool:
    candidate = value.strip()
    if not candidate:
        return False
    return bool(
        _DECIMAL.match(candidate)
        or _RADIX.match(candidate)
        or _INFINITY.match(candidate)
    )


def _is_url(value: str) -> bool:
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def _check_type(key: str, value: str, field_type: str) -> Optional[ValidationIssue]:
    if field_type == "number" and not _is_number(value):
        message = f"Value for '{key}' must be a number"
    elif field_type == "boolean" and not _BOOLEAN.match(value):
        message = f"Value for '{key}' must be a boolean"
    elif field_type == "url" and not _is_url(value):
        message = f"Value for '{key}' must be a valid URL"
    elif field_type == "email" and not _EMAIL.match(value):
        message = f"Value for '{key}' must be a valid email"
    else:
        return None
    return ValidationIssue(key=key, type="invalid_type", message=message, value=value)


def _check_value(
    key: str,
    value: str,
    field: SchemaField,
    result: ValidationResult,
) -> None:
    if field.type:
        issue = _check_type(key, value, field.type)
        if issue:
            result.errors.append(issue)
            return

    if field.regex:
        try:
            pattern = re.compile(field.regex)
        except re.error as err:
            # Schema mistakes never fail validation of the values.
            logger.debug("Ignoring invalid regex for %s: %s", key, err)
            result.warnings.append(f"Invalid regex for '{key}' ignored: {err}")
        else:
            if not pattern.search(value):
                result.errors.append(ValidationIssue(
                    key=key,
                    type="invalid_format",
                    message=f"Value for '{key}' does not match required format",
                    value=value,
                ))

    if field.min_length is not None and len(value) < field.min_length:
        result.errors.append(ValidationIssue(
            key=key,
            type="too_short",
            message=f"Value for '{key}' is too short (min {field.min_length} characters)",
            value=value,
        ))

    if field.max_length is not None and len(value) > field.max_length:
        result.errors.append(ValidationIssue(
            key=key,
            type="too_long",
            message=f"Value for '{key}' is too long (max {field.max_length} characters)",
            value=value,
        ))


def validate_env(
    variables: Mapping[str, str],
    schema: EnvSchema,
    allow_extra: bool = False,
) -> ValidationResult:
    """Validate plaintext variables against a schema.

    Args:
        variables: Plaintext variables of one environment.
        schema: Field rules.
        allow_extra: Accept variables the schema does not define.

    Returns:
        ValidationResult; ``valid`` is True iff there are no errors.
    """
    result = ValidationResult(valid=True)

    for key, field in schema.fields.items():
        value = variables.get(key)

        if field.required and not value:
            result.errors.append(ValidationIssue(
                key=key,
                type="missing",
                message=f"Required variable '{key}' is missing or empty",
            ))
            continue

        if value:
            _check_value(key, value, field, result)

    if not allow_extra:
        for key in variables:
            if key not in schema.fields:
                result.errors.append(ValidationIssue(
                    key=key,
                    type="extra",
                    message=f"Extra variable '{key}' not defined in schema",
                ))

    result.valid = not result.errors
    if result.errors:
        logger.debug("Validation found %d error(s)", len(result.errors))
    return result
