"""EnVault — Self-hosted secrets manager core.

Pure functions consumed by the route, CLI and storage layers:
encryption at rest with key rotation, the ``.env`` codec, the secret
classifier, schema validation and environment diffs.
"""
from .version import __version__
from .exceptions import (
    DecryptionError,
    EnvaultError,
    InvalidMasterKeyError,
    SchemaFormatError,
)
from .classifier import is_secret_key, mask_audit_details, mask_value
from .parser import EnvEntry, ParseResult, export_env, parse_env, serialize_env
from .schema import (
    EnvSchema,
    SchemaField,
    ValidationIssue,
    ValidationResult,
    generate_env_example,
    load_schema,
    parse_env_example,
    parse_schema_json,
    serialize_schema,
    validate_env,
)
from .diff import DiffEntry, DiffResult, diff_envs, diff_summary, format_diff
from .vault import (
    VaultConfig,
    decrypt,
    decrypt_value,
    encrypt,
    encrypt_value,
    generate_master_key,
    is_encrypted,
    rotate_master_key,
    validate_master_key,
)

__all__ = [
    "__version__",
    "DecryptionError",
    "EnvaultError",
    "InvalidMasterKeyError",
    "SchemaFormatError",
    "is_secret_key",
    "mask_audit_details",
    "mask_value",
    "EnvEntry",
    "ParseResult",
    "export_env",
    "parse_env",
    "serialize_env",
    "EnvSchema",
    "SchemaField",
    "ValidationIssue",
    "ValidationResult",
    "generate_env_example",
    "load_schema",
    "parse_env_example",
    "parse_schema_json",
    "serialize_schema",
    "validate_env",
    "DiffEntry",
    "DiffResult",
    "diff_envs",
    "diff_summary",
    "format_diff",
    "VaultConfig",
    "decrypt",
    "decrypt_value",
    "encrypt",
    "encrypt_value",
    "generate_master_key",
    "is_encrypted",
    "rotate_master_key",
    "validate_master_key",
]
