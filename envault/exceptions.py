"""EnVault exceptions."""


class EnvaultError(Exception):
    """Base class for all EnVault errors."""


class DecryptionError(EnvaultError):
    """Ciphertext could not be decrypted.

    Raised for malformed base64, blobs that are too short, and any
    authentication failure (wrong key, tampered or truncated data).
    """


class InvalidMasterKeyError(EnvaultError):
    """A configured master key failed validation at startup."""


class SchemaFormatError(EnvaultError):
    """Schema content is not valid JSON or has an invalid structure."""
