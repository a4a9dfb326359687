"""EnVault Vault — Encryption at rest with key rotation.

Security Note (Threat Model):
    Plaintext values exist only within request scope: created from user
    input or decryption, consumed immediately and never cached.
    Ciphertexts carry no key id, so every configured key is a candidate
    at decrypt time.
"""

from .crypto import (
    KeyValidation,
    decrypt,
    derive_key,
    encrypt,
    generate_master_key,
    is_direct_key,
    is_encrypted,
    validate_master_key,
)
from .key_rotation import (
    CiphertextRecord,
    RecordStore,
    RotationStats,
    decrypt_value,
    encrypt_value,
    rotate_master_key,
)
from .config import VaultConfig, load_master_keys

__all__ = [
    "KeyValidation",
    "decrypt",
    "derive_key",
    "encrypt",
    "generate_master_key",
    "is_direct_key",
    "is_encrypted",
    "validate_master_key",
    "CiphertextRecord",
    "RecordStore",
    "RotationStats",
    "decrypt_value",
    "encrypt_value",
    "rotate_master_key",
    "VaultConfig",
    "load_master_keys",
]
