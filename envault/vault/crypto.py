"""
Vault Crypto Core — Key classification, derivation and AES-256-GCM framing.

Ciphertext blob (base64 encoded, no explicit format marker):

- direct key:      [nonce 12B][tag 16B][ciphertext]
- passphrase key:  [salt 16B][nonce 12B][tag 16B][ciphertext]

Whether a salt is present is decided from the shape of the master key
supplied at decrypt time, using the same classification as encryption.
Rotating between a passphrase and a direct key therefore requires the
previous key to stay configured until every value is re-encrypted.

Security Note:
    Never log plaintext, ciphertext or key material.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import base64
import binascii
import logging
import re
import secrets
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pydantic import BaseModel

from ..exceptions import DecryptionError

logger = logging.getLogger("envault.vault")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM tag
KEY_LENGTH = 32  # AES-256
SALT_SIZE = 16
MIN_PASSPHRASE_LENGTH = 8

# scrypt cost, tuned for interactive use
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1

_HEX_KEY = re.compile(r"^[a-fA-F0-9]{64}$")
_B64_KEY = re.compile(r"^(?:[A-Za-z0-9+/]{43}=?|[A-Za-z0-9+/]{42}(?:==?)?)$")
_B64_VALUE = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")


class KeyValidation(BaseModel):
    """Result of :func:`validate_master_key`."""

    valid: bool
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Key classification
# ---------------------------------------------------------------------------

def _b64decode(value: str) -> bytes:
    """Strict base64 decode that tolerates missing padding."""
    if not _B64_VALUE.match(value):
        raise binascii.Error("Non-base64 characters in value")
    stripped = value.rstrip("=")
    padded = stripped + "=" * (-len(stripped) % 4)
    return base64.b64decode(padded, validate=True)


def _direct_key(master_key: str) -> Optional[bytes]:
    """Return the raw 32-byte key for hex/base64 master keys, else None."""
    if _HEX_KEY.match(master_key):
        return bytes.fromhex(master_key)
    if _B64_KEY.match(master_key):
        try:
            decoded = _b64decode(master_key)
        except (binascii.Error, ValueError):
            return None
        if len(decoded) == KEY_LENGTH:
            return decoded
    return None


def is_direct_key(master_key: str) -> bool:
    """Return True if ``master_key`` is used as raw key material."""
    return _direct_key(master_key) is not None


def derive_key(passphrase: str, salt: bytes) -> bytes:
    """Derive a 32-byte key from a passphrase using scrypt.

    Args:
        passphrase: Master key that is not a direct key.
        salt: 16 random bytes stored inline with the ciphertext.

    Returns:
        32-byte derived key.
    """
    kdf = Scrypt(salt=salt, length=KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(passphrase.encode("utf-8"))


def validate_master_key(master_key: str) -> KeyValidation:
    """Check that a candidate master key is usable.

    Accepts 64 hex characters, base64 of exactly 32 bytes, or any
    passphrase of at least 8 characters.

    Args:
        master_key: Candidate key string.

    Returns:
        KeyValidation with ``valid`` and, when invalid, a readable ``error``.
    """
    if not master_key:
        return KeyValidation(valid=False, error="Master key is required")
    if is_direct_key(master_key):
        return KeyValidation(valid=True)
    if len(master_key) < MIN_PASSPHRASE_LENGTH:
        return KeyValidation(
            valid=False,
            error=(
                f"Master key must be at least {MIN_PASSPHRASE_LENGTH} characters "
                "for passphrase derivation"
            ),
        )
    return KeyValidation(valid=True)


def generate_master_key() -> str:
    """Generate a random 32-byte master key as 64 lowercase hex characters.

    This is a utility for operators to generate new keys.
    """
    return secrets.token_hex(KEY_LENGTH)


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, master_key: str) -> str:
    """Encrypt a value for storage.

    Args:
        plaintext: Any string, including the empty string.
        master_key: Direct key or passphrase.

    Returns:
        Base64 blob; a fresh nonce (and salt) makes every call unique.
    """
    nonce = secrets.token_bytes(NONCE_SIZE)
    key = _direct_key(master_key)
    prefix = b""
    if key is None:
        prefix = secrets.token_bytes(SALT_SIZE)
        key = derive_key(master_key, prefix)

    sealed = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    # AESGCM appends the tag; the stored layout keeps it in front.
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return base64.b64encode(prefix + nonce + tag + ciphertext).decode("ascii")


def decrypt(blob: str, master_key: str) -> str:
    """Decrypt a value produced by :func:`encrypt`.

    Args:
        blob: Base64 ciphertext blob.
        master_key: The key the blob was encrypted with.

    Returns:
        Decrypted plaintext.

    Raises:
        DecryptionError: Invalid base64, blob too short, or the
            authentication tag does not verify.
    """
    try:
        combined = _b64decode(blob)
    except (binascii.Error, ValueError) as err:
        raise DecryptionError("Invalid encrypted data: not base64") from err

    if len(combined) < NONCE_SIZE + TAG_SIZE:
        raise DecryptionError("Invalid encrypted data: too short")

    key = _direct_key(master_key)
    offset = 0
    if key is None:
        if len(combined) < SALT_SIZE + NONCE_SIZE + TAG_SIZE:
            raise DecryptionError(
                "Invalid encrypted data: too short for passphrase mode"
            )
        key = derive_key(master_key, combined[:SALT_SIZE])
        offset = SALT_SIZE

    nonce = combined[offset:offset + NONCE_SIZE]
    tag = combined[offset + NONCE_SIZE:offset + NONCE_SIZE + TAG_SIZE]
    ciphertext = combined[offset + NONCE_SIZE + TAG_SIZE:]

    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext + tag, None)
        return plaintext.decode("utf-8")
    except (InvalidTag, UnicodeDecodeError) as err:
        raise DecryptionError(
            "Decryption failed: invalid key or corrupted data"
        ) from err


def is_encrypted(value: str) -> bool:
    """Heuristic: does ``value`` look like a stored ciphertext blob?

    True when the value is base64 and decodes to at least nonce + tag +
    one byte. Used to tell encrypted storage values from legacy plaintext.
    """
    if not value or len(value) < 40:
        return False
    try:
        decoded = _b64decode(value)
    except (binascii.Error, ValueError):
        return False
    return len(decoded) >= NONCE_SIZE + TAG_SIZE + 1
